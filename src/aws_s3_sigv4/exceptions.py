# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class S3ClientError(Exception):
    """Base exception type for all exceptions raised by aws-s3-sigv4."""


class CredentialUnavailableError(S3ClientError):
    """The credential supplier could not produce a credential.

    Raised before any network call is made for the request.
    """


class RequestConstructionError(S3ClientError, ValueError):
    """A URI component, range, or header could not be represented in a valid
    request."""


class TransportError(S3ClientError):
    """Base exception type for failures raised by the bundled HTTP clients."""

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS S3 SigV4 provides a SigV4 request signer for S3-compatible object storage and
an asynchronous client for signed object reads."""

__license__ = "Apache-2.0"
__version__ = "0.1.0"

from ._http import URI, AWSRequest, Field, Fields  # noqa: E402
from ._identity import AWSCredentialIdentity  # noqa: E402
from .client import S3Client, S3Config, format_http_range  # noqa: E402
from .credentials import (  # noqa: E402
    EnvironmentCredentialsResolver,
    StaticCredentialsResolver,
)
from .signers import SigningContext, SigV4Signer  # noqa: E402

__all__ = (
    "URI",
    "AWSCredentialIdentity",
    "AWSRequest",
    "EnvironmentCredentialsResolver",
    "Field",
    "Fields",
    "S3Client",
    "S3Config",
    "SigV4Signer",
    "SigningContext",
    "StaticCredentialsResolver",
    "format_http_range",
)

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
import os
from typing import Final

from ._identity import AWSCredentialIdentity
from .exceptions import CredentialUnavailableError
from .interfaces.identity import AWSCredentialsIdentity, CredentialsResolver

logger: Final = logging.getLogger(__name__)


class StaticCredentialsResolver(CredentialsResolver):
    """Resolve Static AWS Credentials."""

    def __init__(self, *, credentials: AWSCredentialsIdentity) -> None:
        self._credentials = credentials

    async def get_credential(self) -> AWSCredentialsIdentity:
        return self._credentials


class EnvironmentCredentialsResolver(CredentialsResolver):
    """Resolves AWS Credentials from system environment variables.

    The environment is read on every call, so each request sees the variables as
    they are at the time it is made.
    """

    async def get_credential(self) -> AWSCredentialsIdentity:
        access_key_id = os.getenv("AWS_ACCESS_KEY_ID")
        secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY")
        session_token = os.getenv("AWS_SESSION_TOKEN")

        if not access_key_id or not secret_access_key:
            raise CredentialUnavailableError(
                "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are required"
            )

        logger.debug("Resolved credentials for %s from environment.", access_key_id)
        return AWSCredentialIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token or None,
        )

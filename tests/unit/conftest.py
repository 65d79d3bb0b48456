#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Callable, Iterable

import pytest

from aws_s3_sigv4 import AWSCredentialIdentity, StaticCredentialsResolver
from aws_s3_sigv4.testing import verify_sigv4

type Verifier = Callable[[str, str, str | None, Iterable[tuple[str, str]]], None]


@pytest.fixture
def aws_identity() -> AWSCredentialIdentity:
    return AWSCredentialIdentity(
        access_key_id="AKID123456",
        secret_access_key="EXAMPLE1234SECRET",
        session_token="X123456SESSION",
    )


@pytest.fixture
def static_credentials(
    aws_identity: AWSCredentialIdentity,
) -> StaticCredentialsResolver:
    return StaticCredentialsResolver(credentials=aws_identity)


@pytest.fixture
def sigv4_verifier(aws_identity: AWSCredentialIdentity) -> Verifier:
    def verifier(
        method: str,
        path: str,
        query: str | None,
        headers: Iterable[tuple[str, str]],
    ) -> None:
        verify_sigv4(method, path, query, headers, aws_identity.secret_access_key)

    return verifier

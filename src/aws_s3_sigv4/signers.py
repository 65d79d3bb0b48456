# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import hmac
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from hashlib import sha256
from typing import Final, Self

from ._http import AWSRequest, Field
from .canonical import canonicalize_headers, canonicalize_query
from .interfaces.identity import AWSCredentialsIdentity

logger: Final = logging.getLogger(__name__)

SIGV4_ALGORITHM: str = "AWS4-HMAC-SHA256"
SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_DATE_FORMAT: str = "%Y%m%d"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

SECURITY_TOKEN_HEADER = "x-amz-security-token"
DATE_HEADER = "x-amz-date"
CONTENT_SHA256_HEADER = "x-amz-content-sha256"
AUTHORIZATION_HEADER = "authorization"


@dataclass(frozen=True)
class SigningContext:
    """The instant and scope a request is signed for.

    The timestamp is captured once and every formatted date is derived from it, so
    the date header, the credential scope and the string to sign always agree.
    """

    timestamp: datetime
    """The signing instant. Naive values are taken to be UTC."""

    region: str
    service: str = "s3"

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=UTC))
        else:
            object.__setattr__(self, "timestamp", self.timestamp.astimezone(UTC))

    @classmethod
    def now(cls, *, region: str, service: str = "s3") -> Self:
        return cls(timestamp=datetime.now(UTC), region=region, service=service)

    @property
    def amz_date(self) -> str:
        """The full timestamp, ``YYYYMMDDTHHMMSSZ``."""
        return self.timestamp.strftime(SIGV4_TIMESTAMP_FORMAT)

    @property
    def date_stamp(self) -> str:
        """The scope date, ``YYYYMMDD``."""
        return self.timestamp.strftime(SIGV4_DATE_FORMAT)


def _hash(key: bytes, value: str) -> bytes:
    return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()


def derive_signing_key(
    secret_access_key: str, date_stamp: str, region: str, service: str
) -> bytes:
    """Derive the key that signs requests for one date, region and service.

    A key derived here must never be used for a different tuple of inputs.
    """
    # Components of Signing Key Calculation
    #
    # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
    # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
    # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
    # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
    k_date = _hash(f"AWS4{secret_access_key}".encode(), date_stamp)
    k_region = _hash(k_date, region)
    k_service = _hash(k_region, service)
    return _hash(k_service, "aws4_request")


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm to bodyless
    S3 requests."""

    def sign(
        self,
        *,
        request: AWSRequest,
        identity: AWSCredentialsIdentity,
        context: SigningContext,
    ) -> AWSRequest:
        """Generate and apply a SigV4 Signature to the supplied request.

        The request's fields are updated in place and the same request is returned.
        Signing must be the last change made to a request before it is sent.

        :param request: An AWSRequest to sign prior to sending to the service.
        :param identity: A set of credentials representing an AWS Identity or role
            capacity.
        :param context: The signing instant, region and service.
        """
        self._validate_identity(identity=identity)
        self._apply_required_fields(request=request, identity=identity, context=context)

        # Construct core signing components
        canonical_request = self.canonical_request(request=request, context=context)
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, context=context
        )
        if logger.isEnabledFor(logging.DEBUG):
            logged_request = canonical_request
            if identity.session_token:
                logged_request = logged_request.replace(identity.session_token, "***")
            logger.debug("Canonical request:\n%s", logged_request)
            logger.debug("String to sign:\n%s", string_to_sign)
        signature = self.signature(
            string_to_sign=string_to_sign,
            secret_access_key=identity.secret_access_key,
            context=context,
        )

        signed_headers, _ = canonicalize_headers(request.fields)
        credential = f"{identity.access_key_id}/{self.scope(context)}"
        authorization = self.generate_authorization_field(
            credential=credential,
            signed_headers=signed_headers,
            signature=signature,
        )
        request.fields.set_field(authorization)
        return request

    def generate_authorization_field(
        self, *, credential: str, signed_headers: str, signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/<request_type>
        :param signed_headers:
            The ``;`` separated field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        auth_str = (
            f"{SIGV4_ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )
        return Field(name=AUTHORIZATION_HEADER, values=[auth_str])

    def signature(
        self,
        *,
        string_to_sign: str,
        secret_access_key: str,
        context: SigningContext,
    ) -> str:
        """Sign the string to sign with a key scoped to the context's date, region
        and service."""
        k_signing = self.signing_key(
            secret_access_key=secret_access_key, context=context
        )
        return _hash(k_signing, string_to_sign).hex()

    def signing_key(self, *, secret_access_key: str, context: SigningContext) -> bytes:
        return derive_signing_key(
            secret_access_key, context.date_stamp, context.region, context.service
        )

    def _validate_identity(self, *, identity: AWSCredentialsIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, AWSCredentialsIdentity):  # pyright: ignore
            raise ValueError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialsIdentity but received {type(identity)}."
            )
        elif identity.is_expired:
            raise ValueError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _apply_required_fields(
        self,
        *,
        request: AWSRequest,
        identity: AWSCredentialsIdentity,
        context: SigningContext,
    ) -> None:
        if identity.session_token is not None:
            request.fields.set_field(
                Field(name=SECURITY_TOKEN_HEADER, values=[identity.session_token])
            )
        request.fields.set_field(Field(name=DATE_HEADER, values=[context.amz_date]))
        request.fields.set_field(
            Field(name=CONTENT_SHA256_HEADER, values=[EMPTY_SHA256_HASH])
        )

    def canonical_request(self, *, request: AWSRequest, context: SigningContext) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches and unintended variances.

        The SigV4 specification defines the canonical request to be:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            <CanonicalHeaders>\n
            <SignedHeaders>\n
            <HashedPayload>

        S3 expects the path exactly as sent, so it is not encoded a second time or
        normalized.

        :param request:
            An AWSRequest to use for generating a SigV4 signature.
        :param context:
            The signing instant, region and service.
        """
        canonical_path = request.destination.path or "/"
        canonical_query = canonicalize_query(request.destination.query)
        signed_headers, canonical_headers = canonicalize_headers(request.fields)
        return (
            f"{request.method.upper()}\n"
            f"{canonical_path}\n"
            f"{canonical_query}\n"
            f"{canonical_headers}\n"
            f"{signed_headers}\n"
            f"{EMPTY_SHA256_HASH}"
        )

    def string_to_sign(self, *, canonical_request: str, context: SigningContext) -> str:
        """The string to sign concatenates the formal identifier of the signing
        algorithm, the signing DateTime, the scope of our credentials, and a hash of
        the canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest

        :param canonical_request:
            String generated from the `canonical_request` method.
        :param context:
            The signing instant, region and service.
        """
        return (
            f"{SIGV4_ALGORITHM}\n"
            f"{context.amz_date}\n"
            f"{self.scope(context)}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )

    def scope(self, context: SigningContext) -> str:
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{context.date_stamp}/{context.region}/{context.service}/aws4_request"

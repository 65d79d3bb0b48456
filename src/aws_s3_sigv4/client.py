# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
import platform
import re
from dataclasses import dataclass, field
from types import TracebackType
from typing import Final, Self
from urllib.parse import urlsplit

from . import __version__
from ._http import URI, AWSRequest, Field, Fields
from .aio.crt import AWSCRTHTTPClient
from .aio.interfaces import HTTPClient
from .credentials import EnvironmentCredentialsResolver
from .encoding import UNRESERVED_WITH_SLASH, percent_encode
from .exceptions import CredentialUnavailableError, RequestConstructionError
from .interfaces.identity import AWSCredentialsIdentity, CredentialsResolver
from .signers import SigningContext, SigV4Signer

logger: Final = logging.getLogger(__name__)

S3_SERVICE: Final = "s3"
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

# Bucket names are placed in the path without encoding.
_BUCKET_RE = re.compile(r"[A-Za-z0-9._-]+")
_HOST_RE = re.compile(r"\[[0-9A-Fa-f:.]+\]|[A-Za-z0-9._-]+")

type ByteRange = range | tuple[int, int]
"""A half-open ``[start, end)`` interval of object bytes."""


@dataclass(kw_only=True)
class S3Config:
    """Configuration consumed by :py:class:`S3Client`."""

    region: str
    """The region requests are signed for, for example ``us-west-2``."""

    endpoint: str
    """``host[:port]``, or ``scheme://host[:port]`` with an ``http`` or ``https``
    scheme. Requests use ``https`` when no scheme is given."""

    credentials: CredentialsResolver = field(
        default_factory=EnvironmentCredentialsResolver
    )
    """Supplies the credential for each request."""

    http_client: HTTPClient | None = None
    """The transport. An :py:class:`AWSCRTHTTPClient` is created when unset."""


def parse_endpoint(endpoint: str) -> URI:
    """Parse a configured endpoint into a base :py:class:`URI`.

    :raises RequestConstructionError: If the endpoint is not a bare authority with
        an optional ``http`` or ``https`` scheme.
    """
    raw = endpoint if "://" in endpoint else f"https://{endpoint}"
    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError as e:
        raise RequestConstructionError(f"Invalid endpoint {endpoint!r}: {e}") from e

    if parts.scheme not in DEFAULT_PORTS:
        raise RequestConstructionError(
            f"Invalid endpoint {endpoint!r}: scheme must be http or https"
        )
    if parts.path not in ("", "/") or parts.query or parts.fragment:
        raise RequestConstructionError(
            f"Invalid endpoint {endpoint!r}: only scheme, host and port are allowed"
        )
    if parts.username is not None or parts.password is not None:
        raise RequestConstructionError(
            f"Invalid endpoint {endpoint!r}: user info is not supported"
        )

    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if not _HOST_RE.fullmatch(host):
        raise RequestConstructionError(f"Invalid endpoint {endpoint!r}: bad host")
    return URI(scheme=parts.scheme, host=host, port=port)


def format_http_range(start: int, end: int) -> str:
    """Convert a half-open ``[start, end)`` interval to an inclusive HTTP range.

    Zero-length and inverted intervals collapse to the single byte at ``start``.
    """
    return f"bytes={start}-{max(start, end - 1)}"


def _normalize_range(byte_range: ByteRange) -> tuple[int, int]:
    match byte_range:
        case range(start=start, stop=end, step=1):
            pass
        case (int() as start, int() as end):
            pass
        case _:
            raise RequestConstructionError(
                "Expected a range with step 1 or a (start, end) tuple, "
                f"got {byte_range!r}"
            )
    if start < 0 or end < 0:
        raise RequestConstructionError(
            f"Byte range bounds must not be negative: {byte_range!r}"
        )
    return start, end


def _user_agent() -> str:
    return f"aws-s3-sigv4/{__version__} python/{platform.python_version()}"


class S3Client:
    """An asynchronous client for signed S3 object reads.

    The transport is owned by the client; close it with :py:meth:`close` or by using
    the client as an async context manager.
    """

    def __init__(self, config: S3Config) -> None:
        self._config = config
        self._base_uri = parse_endpoint(config.endpoint)
        self._http_client = config.http_client or AWSCRTHTTPClient()
        self._signer = SigV4Signer()

    async def get(
        self, bucket: str, key: str, byte_range: ByteRange | None = None
    ) -> bytes:
        """Fetch an object, or a byte range of it.

        :param bucket: The bucket name.
        :param key: The object key. It is percent-encoded, keeping ``/`` as is.
        :param byte_range: An optional half-open ``[start, end)`` interval.
        :returns: The full response body. The HTTP status is not interpreted.
        :raises RequestConstructionError: If the bucket, key, or range is invalid.
            An empty key is rejected so the request never becomes a bucket-level
            ``GET``.
        :raises CredentialUnavailableError: If no credential could be fetched.
        """
        request = self._build_request(bucket=bucket, key=key, byte_range=byte_range)
        identity = await self._resolve_credential()

        context = SigningContext.now(region=self._config.region, service=S3_SERVICE)
        self._signer.sign(request=request, identity=identity, context=context)

        logger.debug(
            "Sending request %s %s", request.method, request.destination.build()
        )
        response = await self._http_client.send(request=request)
        logger.debug("Received response with status %s", response.status)
        return await response.consume_body_async()

    def _build_request(
        self, *, bucket: str, key: str, byte_range: ByteRange | None
    ) -> AWSRequest:
        if not _BUCKET_RE.fullmatch(bucket):
            raise RequestConstructionError(f"Invalid bucket name: {bucket!r}")
        if not key:
            raise RequestConstructionError("Object key must not be empty")

        path = f"/{bucket}/{percent_encode(key, UNRESERVED_WITH_SLASH)}"
        destination = URI(
            scheme=self._base_uri.scheme,
            host=self._base_uri.host,
            port=self._base_uri.port,
            path=path,
        )
        fields = Fields(
            [
                Field(name="host", values=[self._host_field(destination)]),
                Field(name="user-agent", values=[_user_agent()]),
            ]
        )
        if byte_range is not None:
            start, end = _normalize_range(byte_range)
            http_range = format_http_range(start, end)
            fields.set_field(Field(name="range", values=[http_range]))

        return AWSRequest(destination=destination, method="GET", fields=fields)

    def _host_field(self, uri: URI) -> str:
        if uri.port is not None and DEFAULT_PORTS.get(uri.scheme) == uri.port:
            return uri.host
        return uri.netloc

    async def _resolve_credential(self) -> AWSCredentialsIdentity:
        resolver = self._config.credentials
        logger.debug("Resolving credentials from %s.", type(resolver))
        try:
            return await resolver.get_credential()
        except CredentialUnavailableError:
            raise
        except Exception as e:
            raise CredentialUnavailableError(
                f"Failed to fetch credentials from {type(resolver).__name__}: {e}"
            ) from e

    async def close(self) -> None:
        """Tear down the transport and its connections."""
        await self._http_client.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()

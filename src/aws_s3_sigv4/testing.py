#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import hmac
import re
from collections import deque
from collections.abc import Iterable
from copy import deepcopy
from hashlib import sha256
from typing import Any
from urllib.parse import parse_qsl, quote

from ._http import tuples_to_fields
from .aio import HTTPResponse
from .aio.interfaces import HTTPClient
from .interfaces.http import Request


class MockHTTPClient(HTTPClient):
    """Implementation of :py:class:`.aio.interfaces.HTTPClient` solely for testing
    purposes.

    Simulates HTTP request/response behavior. Responses and errors are queued in FIFO
    order and requests are captured for inspection.
    """

    def __init__(self) -> None:
        self._response_queue: deque[dict[str, Any] | Exception] = deque()
        self._captured_requests: list[Request] = []
        self.closed = False

    def add_response(
        self,
        status: int = 200,
        headers: list[tuple[str, str]] | None = None,
        body: bytes | list[bytes] = b"",
    ) -> None:
        """Queue a response for the next request.

        :param status: HTTP status code.
        :param headers: HTTP response headers as list of (name, value) tuples.
        :param body: Response body as bytes, or a list of chunks to stream.
        """
        self._response_queue.append(
            {
                "status": status,
                "headers": headers or [],
                "body": body,
            }
        )

    def add_error(self, error: Exception) -> None:
        """Queue an exception to be raised by the next request."""
        self._response_queue.append(error)

    async def send(self, *, request: Request) -> HTTPResponse:
        """Capture the request and return or raise the next queued item.

        :param request: The request including destination URI and fields.
        :raises MockHTTPClientError: If no responses are queued.
        """
        self._captured_requests.append(deepcopy(request))

        if not self._response_queue:
            raise MockHTTPClientError(
                "No responses queued in MockHTTPClient. Use add_response() to queue "
                "responses."
            )
        response_data = self._response_queue.popleft()
        if isinstance(response_data, Exception):
            raise response_data

        body = response_data["body"]
        return HTTPResponse(
            status=response_data["status"],
            fields=tuples_to_fields(response_data["headers"]),
            body=_async_chunks(body) if isinstance(body, list) else body,
            reason=None,
        )

    async def close(self) -> None:
        self.closed = True

    @property
    def call_count(self) -> int:
        """The number of requests made to this client."""
        return len(self._captured_requests)

    @property
    def captured_requests(self) -> list[Request]:
        """The list of all requests captured by this client."""
        return self._captured_requests.copy()


async def _async_chunks(chunks: list[bytes]):
    for chunk in chunks:
        yield chunk


class MockHTTPClientError(Exception):
    """Exception raised by MockHTTPClient for test setup issues."""


AUTHORIZATION_RE = re.compile(
    r"^AWS4-HMAC-SHA256 "
    r"Credential=(?P<access_key>[^/]+)/(?P<date>\d{8})/(?P<region>[a-z0-9-]+)/"
    r"(?P<service>[a-z0-9-]+)/aws4_request, "
    r"SignedHeaders=(?P<signed_headers>[a-z0-9;-]+), "
    r"Signature=(?P<signature>[0-9a-f]{64})$"
)


class SignatureMismatchError(AssertionError):
    """A signature that an independent verifier computes differently."""


def verify_sigv4(
    method: str,
    path: str,
    query: str | None,
    headers: Iterable[tuple[str, str]],
    secret_access_key: str,
) -> None:
    """Re-derive a SigV4 signature from a request as sent and compare it.

    The derivation shares no code with :py:mod:`aws_s3_sigv4.signers`, so it
    can be pointed at requests captured by :py:class:`MockHTTPClient` or
    received by a local test server.

    :raises SignatureMismatchError: If the authorization header is malformed or its
        signature does not match.
    """
    values: dict[str, list[str]] = {}
    for name, value in headers:
        values.setdefault(name.lower(), []).append(value)

    match = AUTHORIZATION_RE.match(values["authorization"][0])
    if match is None:
        raise SignatureMismatchError(
            f"Malformed authorization: {values['authorization']}"
        )
    signed_headers = match["signed_headers"].split(";")
    if signed_headers != sorted(signed_headers):
        raise SignatureMismatchError(f"Signed headers are not sorted: {signed_headers}")

    canonical_headers = "".join(
        f"{name}:{','.join(v.strip() for v in values[name])}\n"
        for name in signed_headers
    )
    query_pairs = [
        (quote(k, safe=""), quote(v, safe=""))
        for k, v in parse_qsl(query or "", keep_blank_values=True)
    ]
    query_pairs.sort(key=lambda pair: pair[0])
    canonical_query = "&".join(f"{k}={v}" for k, v in query_pairs)
    canonical_request = "\n".join(
        [
            method,
            path or "/",
            canonical_query,
            canonical_headers,
            match["signed_headers"],
            values["x-amz-content-sha256"][0],
        ]
    )

    scope = f"{match['date']}/{match['region']}/{match['service']}/aws4_request"
    string_to_sign = "\n".join(
        [
            "AWS4-HMAC-SHA256",
            values["x-amz-date"][0],
            scope,
            sha256(canonical_request.encode("utf-8")).hexdigest(),
        ]
    )
    key = ("AWS4" + secret_access_key).encode("utf-8")
    for part in (match["date"], match["region"], match["service"], "aws4_request"):
        key = hmac.new(key, part.encode("utf-8"), sha256).digest()
    expected = hmac.new(key, string_to_sign.encode("utf-8"), sha256).hexdigest()

    if not hmac.compare_digest(expected, match["signature"]):
        raise SignatureMismatchError(
            f"Signature mismatch for canonical request:\n{canonical_request}"
        )

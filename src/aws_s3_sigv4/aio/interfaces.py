#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import AsyncIterable
from typing import Protocol

from ..interfaces.http import Fields, Request

type StreamingBody = bytes | bytearray | AsyncIterable[bytes]
"""A response payload, either already buffered or as async chunks."""


class HTTPResponse(Protocol):
    """HTTP primitives returned from an Exchange."""

    @property
    def status(self) -> int:
        """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""
        ...

    @property
    def fields(self) -> Fields:
        """``Fields`` object containing HTTP headers and trailers."""
        ...

    @property
    def reason(self) -> str | None:
        """Optional string provided by the server explaining the status."""
        ...

    @property
    def body(self) -> StreamingBody:
        """The response payload."""
        ...

    async def consume_body_async(self) -> bytes:
        """Iterate over response body and return as bytes."""
        ...


class HTTPClient(Protocol):
    """An asynchronous HTTP client interface.

    A client owns its connections. It is created before the first request and torn
    down with :py:meth:`close`.
    """

    async def send(self, *, request: Request) -> HTTPResponse:
        """Send HTTP request over the wire and return the response.

        :param request: The request including destination URI and fields.
        """
        ...

    async def close(self) -> None:
        """Release every connection held by the client."""
        ...

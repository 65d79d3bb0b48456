# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import AsyncIterable
from dataclasses import dataclass, field

from ..interfaces.http import Fields
from .interfaces import StreamingBody


async def read_body_async(body: StreamingBody) -> bytes:
    """Asynchronously read a response body into a single contiguous buffer.

    :param body: The response payload to read.
    """
    match body:
        case bytes():
            return body
        case bytearray():
            return bytes(body)
        case AsyncIterable():
            buffer = bytearray()
            async for chunk in body:
                buffer += chunk
            return bytes(buffer)
        case _:
            raise TypeError(f"Expected type {StreamingBody}, but was {type(body)}")


# HTTPResponse implements interfaces.HTTPResponse but cannot be explicitly annotated
# to reflect this because doing so causes Python to raise an AttributeError.
@dataclass(kw_only=True)
class HTTPResponse:
    """Basic implementation of :py:class:`.interfaces.HTTPResponse`."""

    body: StreamingBody = field(repr=False, default=b"")
    """The response payload."""

    status: int
    """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""

    fields: Fields
    """HTTP header and trailer fields."""

    reason: str | None = None
    """Optional string provided by the server explaining the status."""

    async def consume_body_async(self) -> bytes:
        """Iterate over response body and return as bytes."""
        return await read_body_async(self.body)

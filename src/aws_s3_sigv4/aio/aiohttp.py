#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from itertools import chain
from typing import Final

import aiohttp
from yarl import URL

from .._http import tuples_to_fields
from ..interfaces.http import FieldPosition, Request
from . import HTTPResponse
from .interfaces import HTTPClient

logger: Final = logging.getLogger(__name__)


class AIOHTTPClient(HTTPClient):
    """Implementation of :py:class:`.interfaces.HTTPClient` using aiohttp."""

    def __init__(self, *, _session: aiohttp.ClientSession | None = None) -> None:
        # ClientSession must be created inside a running event loop, so the default
        # session is opened on first use.
        self._session = _session

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # Response bodies are returned exactly as stored.
            self._session = aiohttp.ClientSession(auto_decompress=False)
        return self._session

    async def send(self, *, request: Request) -> HTTPResponse:
        """Send HTTP request using aiohttp client.

        The signed path and query are sent exactly as built; aiohttp is told not to
        re-encode them.

        :param request: The request including destination URI and fields.
        """
        headers_list = list(
            chain.from_iterable(
                fld.as_tuples()
                for fld in request.fields.get_by_type(FieldPosition.HEADER)
            )
        )
        url = URL(request.destination.build(), encoded=True)
        logger.debug("Sending %s %s with aiohttp", request.method, url)

        async with self._get_session().request(
            method=request.method,
            url=url,
            headers=headers_list,
        ) as resp:
            return await self._marshal_response(resp)

    async def _marshal_response(
        self, aiohttp_resp: aiohttp.ClientResponse
    ) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to an ``HTTPResponse``."""
        return HTTPResponse(
            status=aiohttp_resp.status,
            fields=tuples_to_fields(aiohttp_resp.headers.items()),
            body=await aiohttp_resp.read(),
            reason=aiohttp_resp.reason,
        )

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
#  pyright: reportMissingTypeStubs=false,reportUnknownMemberType=false
import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Final

from awscrt import http as crt_http
from awscrt import io as crt_io
from awscrt.aio.http import AIOHttpClientConnectionUnified, AIOHttpClientStreamUnified

from .._http import tuples_to_fields
from ..exceptions import TransportError
from ..interfaces.http import URI, Fields, FieldPosition, Request
from . import read_body_async
from .interfaces import HTTPClient, HTTPResponse

logger: Final = logging.getLogger(__name__)


class _AWSCRTEventLoop:
    def __init__(self) -> None:
        self.bootstrap = self._initialize_default_loop()

    def _initialize_default_loop(self) -> crt_io.ClientBootstrap:
        event_loop_group = crt_io.EventLoopGroup(1)
        host_resolver = crt_io.DefaultHostResolver(event_loop_group)
        return crt_io.ClientBootstrap(event_loop_group, host_resolver)


class AWSCRTHTTPResponse(HTTPResponse):
    def __init__(
        self,
        *,
        status: int,
        fields: Fields,
        stream: AIOHttpClientStreamUnified,
    ) -> None:
        self._status = status
        self._fields = fields
        self._stream = stream

    @property
    def status(self) -> int:
        return self._status

    @property
    def fields(self) -> Fields:
        return self._fields

    @property
    def body(self) -> AsyncGenerator[bytes, None]:
        return self.chunks()

    @property
    def reason(self) -> str | None:
        """Optional string provided by the server explaining the status."""
        # CRT does not expose the reason phrase.
        return None

    async def chunks(self) -> AsyncGenerator[bytes, None]:
        while True:
            chunk = await self._stream.get_next_response_chunk()
            if chunk:
                yield chunk
            else:
                break

    async def consume_body_async(self) -> bytes:
        return await read_body_async(self.body)

    def __repr__(self) -> str:
        return (
            f"AWSCRTHTTPResponse("
            f"status={self.status}, "
            f"fields={self.fields!r}, body=...)"
        )


ConnectionPoolKey = tuple[str, str, int | None]
ConnectionPoolDict = dict[ConnectionPoolKey, AIOHttpClientConnectionUnified]


class AWSCRTHTTPClient(HTTPClient):
    _HTTP_PORT = 80
    _HTTPS_PORT = 443

    def __init__(self, eventloop: _AWSCRTEventLoop | None = None) -> None:
        if eventloop is None:
            eventloop = _AWSCRTEventLoop()
        self._eventloop = eventloop
        self._client_bootstrap = self._eventloop.bootstrap
        self._tls_ctx = crt_io.ClientTlsContext(crt_io.TlsContextOptions())
        self._socket_options = crt_io.SocketOptions()
        self._connections: ConnectionPoolDict = {}
        self._connection_locks: dict[ConnectionPoolKey, asyncio.Lock] = {}

    async def send(self, *, request: Request) -> AWSCRTHTTPResponse:
        """Send HTTP request using awscrt client.

        :param request: The request including destination URI and fields.
        """
        crt_request = self._marshal_request(request)
        connection = await self._get_connection(request.destination)
        logger.debug("Sending %s %s with awscrt", request.method, crt_request.path)

        crt_stream = connection.request(
            crt_request,
            request_body_generator=self._empty_body(),
        )
        return await self._await_response(crt_stream)

    async def _await_response(
        self, stream: AIOHttpClientStreamUnified
    ) -> AWSCRTHTTPResponse:
        status_code = await stream.get_response_status_code()
        headers = await stream.get_response_headers()
        return AWSCRTHTTPResponse(
            status=status_code,
            fields=tuples_to_fields(headers),
            stream=stream,
        )

    async def _get_connection(self, url: URI) -> AIOHttpClientConnectionUnified:
        connection_key = (url.scheme, url.host, url.port)
        # Concurrent sends to one endpoint must share a single connection.
        lock = self._connection_locks.setdefault(connection_key, asyncio.Lock())
        async with lock:
            connection = self._connections.get(connection_key)
            if connection and connection.is_open():
                return connection

            connection = await self._build_new_connection(url)
            self._connections[connection_key] = connection
            return connection

    async def _build_new_connection(self, url: URI) -> AIOHttpClientConnectionUnified:
        if url.scheme == "http":
            port = self._HTTP_PORT
            tls_connection_options = None
        elif url.scheme == "https":
            port = self._HTTPS_PORT
            tls_connection_options = self._tls_ctx.new_connection_options()
            tls_connection_options.set_server_name(url.host)
            tls_connection_options.set_alpn_list(["http/1.1"])
        else:
            raise TransportError(
                f"AWSCRTHTTPClient does not support URL scheme {url.scheme}"
            )
        if url.port is not None:
            port = url.port

        return await AIOHttpClientConnectionUnified.new(
            bootstrap=self._client_bootstrap,
            host_name=url.host,
            port=port,
            socket_options=self._socket_options,
            tls_connection_options=tls_connection_options,
        )

    def _render_path(self, url: URI) -> str:
        path = url.path if url.path is not None else "/"
        query = f"?{url.query}" if url.query is not None else ""
        return f"{path}{query}"

    def _marshal_request(self, request: Request) -> crt_http.HttpRequest:
        """Create :py:class:`awscrt.http.HttpRequest` from a signed request.

        The request's own fields are left untouched; a ``host`` header is only added
        to the wire request if the caller did not provide one.
        """
        headers_list: list[tuple[str, str]] = []
        if "host" not in request.fields:
            headers_list.append(("host", request.destination.netloc))

        for fld in request.fields.get_by_type(FieldPosition.HEADER):
            headers_list.extend(fld.as_tuples())

        return crt_http.HttpRequest(
            method=request.method,
            path=self._render_path(request.destination),
            headers=crt_http.HttpHeaders(headers_list),
        )

    async def _empty_body(self) -> AsyncGenerator[bytes, None]:
        # Only bodyless requests are sent, so the generator never yields.
        return
        yield

    async def close(self) -> None:
        connections = list(self._connections.values())
        self._connections.clear()
        for connection in connections:
            if connection.is_open():
                await connection.close()

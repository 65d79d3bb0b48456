#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
#  pyright: reportPrivateUsage=false
import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from aws_s3_sigv4 import URI, AWSRequest, Field, Fields
from aws_s3_sigv4.aio.crt import AWSCRTHTTPClient, AWSCRTHTTPResponse
from aws_s3_sigv4.exceptions import TransportError
from aws_s3_sigv4.interfaces.http import FieldPosition

_NEW_CONNECTION = "aws_s3_sigv4.aio.crt.AIOHttpClientConnectionUnified.new"


def _open_connection() -> AsyncMock:
    connection = AsyncMock()
    connection.is_open = Mock(return_value=True)
    return connection


def test_client_marshal_request() -> None:
    client = AWSCRTHTTPClient()
    request = AWSRequest(
        method="GET",
        destination=URI(
            host="example.com", path="/bucket/a%20b", query="versionId=1"
        ),
        fields=Fields(
            [
                Field(name="host", values=["example.com"]),
                Field(name="range", values=["bytes=0-9"]),
                Field(name="x-trailer", values=["t"], kind=FieldPosition.TRAILER),
            ]
        ),
    )
    crt_request = client._marshal_request(request)
    assert crt_request.method == "GET"
    assert crt_request.path == "/bucket/a%20b?versionId=1"
    assert crt_request.headers.get("host") == "example.com"
    assert crt_request.headers.get("range") == "bytes=0-9"
    assert crt_request.headers.get("x-trailer") is None


@pytest.mark.parametrize(
    "uri,expected",
    [
        (URI(host="example.com", port=8443, path="/b/k"), "example.com:8443"),
        (URI(host="[2001:db8::1]", port=8443, path="/b/k"), "[2001:db8::1]:8443"),
        (URI(host="example.com", path="/b/k"), "example.com"),
    ],
)
def test_host_added_only_on_the_wire(uri: URI, expected: str) -> None:
    client = AWSCRTHTTPClient()
    request = AWSRequest(method="GET", destination=uri)
    crt_request = client._marshal_request(request)
    assert crt_request.headers.get("host") == expected
    assert "host" not in request.fields


def test_missing_path_is_root() -> None:
    client = AWSCRTHTTPClient()
    request = AWSRequest(method="GET", destination=URI(host="example.com"))
    assert client._marshal_request(request).path == "/"


@pytest.mark.asyncio
async def test_empty_body_yields_nothing() -> None:
    client = AWSCRTHTTPClient()
    assert [chunk async for chunk in client._empty_body()] == []


@pytest.mark.asyncio
async def test_build_connection_http() -> None:
    client = AWSCRTHTTPClient()
    url = URI(scheme="http", host="example.com", port=8080)

    with patch(_NEW_CONNECTION) as mock_new:
        mock_connection = _open_connection()
        mock_new.return_value = mock_connection

        connection = await client._build_new_connection(url)

        assert connection is mock_connection
        call_kwargs = mock_new.call_args[1]
        assert call_kwargs["host_name"] == "example.com"
        assert call_kwargs["port"] == 8080
        assert call_kwargs["tls_connection_options"] is None


@pytest.mark.asyncio
async def test_build_connection_https() -> None:
    client = AWSCRTHTTPClient()
    url = URI(scheme="https", host="secure.example.com")

    with patch(_NEW_CONNECTION) as mock_new:
        mock_new.return_value = _open_connection()

        await client._build_new_connection(url)

        call_kwargs = mock_new.call_args[1]
        assert call_kwargs["host_name"] == "secure.example.com"
        assert call_kwargs["port"] == 443
        assert call_kwargs["tls_connection_options"] is not None


@pytest.mark.asyncio
async def test_build_connection_unsupported_scheme() -> None:
    client = AWSCRTHTTPClient()
    url = URI(scheme="ftp", host="example.com")

    with pytest.raises(TransportError, match="does not support URL scheme ftp"):
        await client._build_new_connection(url)


@pytest.mark.asyncio
async def test_connection_pooling() -> None:
    client = AWSCRTHTTPClient()
    url = URI(scheme="https", host="example.com")

    with patch(_NEW_CONNECTION) as mock_new:
        mock_new.return_value = _open_connection()

        conn1 = await client._get_connection(url)
        conn2 = await client._get_connection(url)

        assert mock_new.call_count == 1
        assert conn1 is conn2


@pytest.mark.asyncio
async def test_connection_pooling_different_ports() -> None:
    client = AWSCRTHTTPClient()

    with patch(_NEW_CONNECTION) as mock_new:
        mock_new.side_effect = [_open_connection(), _open_connection()]

        conn1 = await client._get_connection(URI(host="example.com", port=9000))
        conn2 = await client._get_connection(URI(host="example.com", port=9001))

        assert mock_new.call_count == 2
        assert conn1 is not conn2


@pytest.mark.asyncio
async def test_closed_connection_is_replaced() -> None:
    client = AWSCRTHTTPClient()
    url = URI(scheme="https", host="example.com")

    closed = _open_connection()
    closed.is_open = Mock(return_value=False)
    replacement = _open_connection()

    with patch(_NEW_CONNECTION) as mock_new:
        mock_new.side_effect = [closed, replacement]

        assert await client._get_connection(url) is closed
        assert await client._get_connection(url) is replacement


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_connection() -> None:
    client = AWSCRTHTTPClient()
    url = URI(scheme="https", host="example.com")
    built: list[AsyncMock] = []

    async def new_connection(**kwargs: object) -> AsyncMock:
        await asyncio.sleep(0)
        connection = _open_connection()
        built.append(connection)
        return connection

    with patch(_NEW_CONNECTION, side_effect=new_connection):
        connections = await asyncio.gather(
            *(client._get_connection(url) for _ in range(3))
        )

    assert len(built) == 1
    assert all(connection is built[0] for connection in connections)

    await client.close()
    built[0].close.assert_awaited_once()


@pytest.mark.asyncio
async def test_send_streams_response() -> None:
    client = AWSCRTHTTPClient()
    stream = AsyncMock()
    stream.get_response_status_code.return_value = 206
    stream.get_response_headers.return_value = [
        ("content-range", "bytes 0-3/10"),
        ("x-amz-meta-a", "1"),
        ("x-amz-meta-a", "2"),
    ]
    stream.get_next_response_chunk.side_effect = [b"01", b"23", b""]
    connection = _open_connection()
    connection.request = Mock(return_value=stream)

    request = AWSRequest(
        method="GET",
        destination=URI(host="example.com", path="/bucket/key"),
        fields=Fields([Field(name="host", values=["example.com"])]),
    )
    with patch(_NEW_CONNECTION, return_value=connection):
        response = await client.send(request=request)

    assert response.status == 206
    assert response.fields["content-range"].values == ["bytes 0-3/10"]
    assert response.fields["x-amz-meta-a"].values == ["1", "2"]
    assert response.reason is None
    assert await response.consume_body_async() == b"0123"


@pytest.mark.asyncio
async def test_close_releases_open_connections() -> None:
    client = AWSCRTHTTPClient()
    open_connection = _open_connection()
    closed_connection = _open_connection()
    closed_connection.is_open = Mock(return_value=False)

    with patch(_NEW_CONNECTION) as mock_new:
        mock_new.side_effect = [open_connection, closed_connection]
        await client._get_connection(URI(host="a.example.com"))
        await client._get_connection(URI(host="b.example.com"))

    await client.close()

    open_connection.close.assert_awaited_once()
    closed_connection.close.assert_not_awaited()
    await client.close()
    open_connection.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_response_chunks() -> None:
    mock_stream = AsyncMock()
    mock_stream.get_next_response_chunk.side_effect = [b"chunk1", b"chunk2", b""]

    response = AWSCRTHTTPResponse(status=200, fields=Fields(), stream=mock_stream)

    assert [chunk async for chunk in response.body] == [b"chunk1", b"chunk2"]

"""Tests for the aiohttp transport against a local test server."""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from http_content.exceptions import NetworkError
from http_content.net.transport import AiohttpTransport


async def _ok(request):
    return web.Response(
        body=b"payload", headers={"Content-Type": "application/octet-stream"}
    )


async def _missing(request):
    return web.Response(status=404, text="not here")


async def _slow(request):
    await asyncio.sleep(1)
    return web.Response(text="late")


async def _echo_header(request):
    return web.Response(text=request.headers.get("X-Token", ""))


@pytest.fixture
async def server():
    app = web.Application()
    app.router.add_get("/ok", _ok)
    app.router.add_get("/missing", _missing)
    app.router.add_get("/slow", _slow)
    app.router.add_get("/echo", _echo_header)
    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.fixture
async def http():
    transport = AiohttpTransport()
    yield transport
    await transport.close()


class TestAiohttpTransport:
    async def test_body_and_headers(self, server, http):
        outcome = await http.fetch(str(server.make_url("/ok")))
        assert outcome.status == 200
        assert outcome.body == b"payload"
        assert outcome.content_type == "application/octet-stream"

    async def test_error_status_is_returned_untouched(self, server, http):
        outcome = await http.fetch(str(server.make_url("/missing")))
        assert outcome.status == 404
        assert outcome.body == b"not here"

    async def test_request_headers_are_sent(self, server, http):
        outcome = await http.fetch(str(server.make_url("/echo")), {"X-Token": "abc"})
        assert outcome.body == b"abc"

    async def test_refused_connection_is_a_network_error(self, http):
        with pytest.raises(NetworkError):
            await http.fetch("http://127.0.0.1:1/", timeout=5)

    async def test_timeout_is_a_network_error(self, server, http):
        with pytest.raises(NetworkError):
            await http.fetch(str(server.make_url("/slow")), timeout=0.1)

    async def test_close_is_idempotent(self, http):
        await http.close()
        await http.close()

"""Tests for the probe executors."""
import asyncio
import socket
from unittest.mock import AsyncMock

import httpx
import pytest

from uptime.services import checker
from uptime.services.checker import ProbeResult, http_probe, run_probe, tcp_probe


def _closed_port() -> int:
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class TestHttpProbe:
    """Request/response probe."""

    async def test_success(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        result = await http_probe("http://svc.test/health", 1.0, transport=transport)
        assert result.success is True
        assert result.error is None
        assert result.latency_ms >= 0

    async def test_redirect_to_healthy_page_is_success(self):
        def handler(request):
            if request.url.path == "/":
                return httpx.Response(302, headers={"Location": "/up"})
            return httpx.Response(200, text="ok")

        result = await http_probe("http://svc.test/", 1.0, transport=httpx.MockTransport(handler))
        assert result.success is True

    async def test_redirect_to_error_page_is_failure(self):
        def handler(request):
            if request.url.path == "/":
                return httpx.Response(302, headers={"Location": "/down"})
            return httpx.Response(503)

        result = await http_probe("http://svc.test/", 1.0, transport=httpx.MockTransport(handler))
        assert result.success is False
        assert result.error == "HTTP status 503"

    async def test_error_status_is_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        result = await http_probe("http://svc.test/health", 1.0, transport=transport)
        assert result.success is False
        assert result.error == "HTTP status 503"

    async def test_client_error_status_is_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        result = await http_probe("http://svc.test/missing", 1.0, transport=transport)
        assert result.success is False
        assert "404" in result.error

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await http_probe("http://svc.test/", 1.0, transport=httpx.MockTransport(handler))
        assert result.success is False
        assert result.error.startswith("Connection error")

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = await http_probe("http://svc.test/", 1.0, transport=httpx.MockTransport(handler))
        assert result.success is False
        assert result.error == "Request timeout"

    async def test_invalid_url(self):
        result = await http_probe("not a url", 1.0)
        assert result.success is False
        assert result.error is not None


class TestTcpProbe:
    """Connection-only probe."""

    async def test_connects_to_listener(self):
        server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            result = await tcp_probe(f"127.0.0.1:{port}", 1.0)
        finally:
            server.close()
            await server.wait_closed()

        assert result.success is True
        assert result.error is None

    async def test_url_address(self):
        server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            result = await tcp_probe(f"http://127.0.0.1:{port}/health", 1.0)
        finally:
            server.close()
            await server.wait_closed()

        assert result.success is True

    async def test_refused(self):
        result = await tcp_probe(f"127.0.0.1:{_closed_port()}", 1.0)
        assert result.success is False
        assert result.error.startswith("Connection error")

    async def test_bad_address(self):
        result = await tcp_probe("no-port-here", 1.0)
        assert result.success is False
        assert "host:port" in result.error

    async def test_timeout(self, monkeypatch):
        async def never_connects(host, port):
            await asyncio.sleep(10)

        monkeypatch.setattr(checker.asyncio, "open_connection", never_connects)
        result = await tcp_probe("10.255.255.1:80", 0.05)
        assert result.success is False
        assert result.error == "Connection timeout"


class TestRunProbe:
    """Method dispatch."""

    @pytest.fixture
    def probes(self, monkeypatch):
        http = AsyncMock(return_value=ProbeResult(success=True, latency_ms=1.0))
        tcp = AsyncMock(return_value=ProbeResult(success=True, latency_ms=2.0))
        monkeypatch.setattr(checker, "http_probe", http)
        monkeypatch.setattr(checker, "tcp_probe", tcp)
        return http, tcp

    @pytest.mark.parametrize("method", ["HTTP", "https", "GET"])
    async def test_request_methods(self, probes, method):
        http, tcp = probes
        await run_probe(method, "https://svc.test", 3.0)
        http.assert_awaited_once_with("https://svc.test", 3.0)
        tcp.assert_not_awaited()

    async def test_tcp_method(self, probes):
        http, tcp = probes
        await run_probe("TCP", "svc.test:22", 3.0)
        tcp.assert_awaited_once_with("svc.test:22", 3.0)
        http.assert_not_awaited()

    @pytest.mark.parametrize("method", ["ICMP", "", None])
    async def test_unknown_method_falls_back_to_tcp(self, probes, method):
        http, tcp = probes
        result = await run_probe(method, "svc.test:22", 3.0)
        assert result.latency_ms == 2.0
        tcp.assert_awaited_once()
        http.assert_not_awaited()

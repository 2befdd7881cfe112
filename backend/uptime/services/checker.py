"""Checker service - performs HTTP request/response and TCP connect probes."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

REQUEST_METHODS = ("HTTP", "HTTPS", "GET")
CONNECT_METHODS = ("TCP",)

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ProbeResult:
    """Result of one reachability attempt."""
    success: bool
    latency_ms: float
    error: Optional[str] = None


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


async def http_probe(
    url: str,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProbeResult:
    """Issue a single GET request.

    Redirects are followed and the final response decides. Transport
    errors, timeouts and 4xx/5xx responses are failures.
    """
    start = time.monotonic()
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True) as client:
            response = await client.get(url)
    except httpx.TimeoutException:
        return ProbeResult(success=False, latency_ms=_elapsed_ms(start), error="Request timeout")
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return ProbeResult(success=False, latency_ms=_elapsed_ms(start), error=f"Connection error: {e}")

    latency = _elapsed_ms(start)
    if response.status_code >= 400:
        return ProbeResult(success=False, latency_ms=latency, error=f"HTTP status {response.status_code}")
    return ProbeResult(success=True, latency_ms=latency)


def _split_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` or a URL into host and port."""
    if "://" in address:
        parsed = urlparse(address)
        if not parsed.hostname:
            raise ValueError(f"No host in address: {address}")
        port = parsed.port or _DEFAULT_PORTS.get(parsed.scheme)
        if port is None:
            raise ValueError(f"No port in address: {address}")
        return parsed.hostname, port

    host, sep, port_str = address.rpartition(":")
    if not sep or not host:
        raise ValueError(f"Address must be host:port, got {address}")
    return host.strip("[]"), int(port_str)


async def tcp_probe(address: str, timeout: float) -> ProbeResult:
    """Open a TCP connection; success is the connection being established."""
    start = time.monotonic()
    try:
        host, port = _split_address(address)
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except asyncio.TimeoutError:
        return ProbeResult(success=False, latency_ms=_elapsed_ms(start), error="Connection timeout")
    except (OSError, ValueError) as e:
        return ProbeResult(success=False, latency_ms=_elapsed_ms(start), error=f"Connection error: {e}")

    latency = _elapsed_ms(start)
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        # Peer reset during close; the connection was still established
        pass
    return ProbeResult(success=True, latency_ms=latency)


async def run_probe(method: str, address: str, timeout: float) -> ProbeResult:
    """Run the probe for a method. Unknown methods fall back to TCP."""
    method = (method or "").upper()
    if method in REQUEST_METHODS:
        return await http_probe(address, timeout)
    if method not in CONNECT_METHODS:
        logger.debug(f"Unknown probe method {method!r} for {address}, using TCP")
    return await tcp_probe(address, timeout)

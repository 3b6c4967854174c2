"""Relay unanswered requests to an upstream resolver over UDP."""
from __future__ import annotations

import asyncio
import logging
import socket

from dnslib import DNSRecord
from dnslib.dns import DNSError

from .errors import ForwardError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 53
# Same as the usual stub-resolver read timeout.
DEFAULT_TIMEOUT = 2.0


def parse_upstream(address: str) -> tuple[str, int]:
    """Split ``host[:port]`` into its parts.

    IPv6 hosts may be bracketed (``[::1]:53``); a bare IPv6 literal is
    taken as a host with the default port.

    Raises:
        ValueError: On an empty host or an invalid port.
    """
    address = address.strip()
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep:
            raise ValueError(f"unterminated IPv6 literal: {address!r}")
        port = rest[1:] if rest.startswith(":") else ""
    elif address.count(":") == 1:
        host, _, port = address.partition(":")
    else:
        host, port = address, ""
    if not host:
        raise ValueError(f"missing upstream host: {address!r}")
    port_num = int(port) if port else DEFAULT_PORT
    if not 0 < port_num < 65536:
        raise ValueError(f"upstream port out of range: {port_num}")
    return host, port_num


class _UpstreamProtocol(asyncio.DatagramProtocol):
    """Sends one datagram and resolves a future with the first reply."""

    def __init__(self, payload: bytes, reply: asyncio.Future) -> None:
        self.payload = payload
        self.reply = reply

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        transport.sendto(self.payload)  # type: ignore[attr-defined]

    def datagram_received(self, data: bytes, addr) -> None:
        if not self.reply.done():
            self.reply.set_result(data)

    def error_received(self, exc: Exception) -> None:
        if not self.reply.done():
            self.reply.set_exception(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None and not self.reply.done():
            self.reply.set_exception(exc)


async def forward(request: bytes, upstream: str, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """Forward a raw DNS request and return the upstream reply unchanged.

    Args:
        request: Wire-format request exactly as received from the client.
        upstream: Upstream address, ``host[:port]``.
        timeout: Seconds to wait for the reply.

    Returns:
        Wire-format reply bytes, as sent by the upstream.

    Raises:
        ForwardError: On timeout, socket errors, or an undecodable reply.
    """
    try:
        host, port = parse_upstream(upstream)
    except ValueError as exc:
        raise ForwardError(str(exc)) from exc

    logger.debug("forwarding %d bytes to %s:%d", len(request), host, port)
    loop = asyncio.get_running_loop()
    reply: asyncio.Future = loop.create_future()
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        transport, _ = await loop.create_datagram_endpoint(
            lambda: _UpstreamProtocol(request, reply),
            remote_addr=(host, port),
            family=family,
        )
    except OSError as exc:
        raise ForwardError(f"cannot reach upstream {upstream}: {exc}") from exc

    try:
        data = await asyncio.wait_for(reply, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise ForwardError(f"upstream {upstream} timed out after {timeout}s") from exc
    except OSError as exc:
        raise ForwardError(f"upstream {upstream} failed: {exc}") from exc
    finally:
        transport.close()

    try:
        DNSRecord.parse(data)
    except DNSError as exc:
        raise ForwardError(f"malformed reply from {upstream}: {exc}") from exc
    return data

"""Asyncio UDP protocol serving the zone with upstream fallback."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from dnslib import DNSHeader, DNSRecord, QTYPE, RCODE
from dnslib.dns import DNSError

from .errors import ForwardError
from .forwarder import forward
from .reload import ZoneHandle
from .resolver import resolve_request

logger = logging.getLogger(__name__)


class DNSUDPProtocol(asyncio.DatagramProtocol):
    """Zone-backed DNS handler over UDP.

    Attributes:
        transport: Active UDP transport or None until connected.
        handle: Shared active zone snapshot.
        fallback: Upstream ``host:port`` or empty to disable forwarding.
    """

    def __init__(self, handle: ZoneHandle, fallback: str = "") -> None:
        """Initialize the protocol.

        Args:
            handle: Snapshot holder kept current by the reload supervisor.
            fallback: Upstream address for unanswered requests.
        """
        self.transport: asyncio.DatagramTransport | None = None
        self.handle = handle
        self.fallback = fallback
        self._tasks: set[asyncio.Task] = set()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        """Called by asyncio when the UDP socket is ready.

        Args:
            transport: Created datagram transport.
        """
        self.transport = transport  # type: ignore[assignment]
        sock = self.transport.get_extra_info("socket")
        logger.info("UDP listening on %s", sock.getsockname() if sock else "?")

    def datagram_received(self, data: bytes, addr: Any) -> None:
        """Spawn a task answering a single DNS datagram.

        Args:
            data: Raw DNS message bytes.
            addr: Client address tuple as provided by asyncio.
        """
        logger.debug("received %d bytes from %s", len(data), addr)
        task = asyncio.get_running_loop().create_task(self._respond(data, addr))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _respond(self, data: bytes, addr: Any) -> None:
        """Answer one datagram and send the reply back to `addr`.

        Args:
            data: Raw DNS request.
            addr: Client address to reply to.
        """
        reply = await self.handle_request(data)
        if reply is None or self.transport is None:
            return
        try:
            self.transport.sendto(reply, addr)
        except (OSError, RuntimeError) as exc:
            logger.warning("failed to send response to %s: %s", addr, exc)

    async def handle_request(self, data: bytes) -> bytes | None:
        """Build the wire reply for a raw request.

        Local answers win. When no question was answered and an upstream
        is configured, the request is forwarded untouched and the upstream
        reply relayed as is; a failed forward becomes SERVFAIL.

        Args:
            data: Raw DNS request.

        Returns:
            Reply bytes, or None when the request could not be decoded.
        """
        try:
            request = DNSRecord.parse(data)
        except DNSError:
            logger.debug("failed to parse request")
            return None

        for q in request.questions:
            logger.info("query: %s %s", QTYPE.get(q.qtype), q.qname)

        result = resolve_request(self.handle, request)
        reply = DNSRecord(
            DNSHeader(
                id=request.header.id,
                qr=1,
                aa=1,
                ra=0,
                rd=request.header.rd,
                opcode=request.header.opcode,
            ),
            questions=request.questions,
        )
        reply.header.rcode = result.rcode

        if not result.answered and self.fallback:
            try:
                upstream = await forward(data, self.fallback)
            except ForwardError as exc:
                logger.warning("fallback failed: %s", exc)
                reply.header.rcode = RCODE.SERVFAIL
            else:
                for rr in DNSRecord.parse(upstream).rr:
                    logger.info("forwarded response: %s", rr.toZone())
                return upstream

        for rr in result.answers:
            reply.add_answer(rr)
            logger.info("responded with: %s", rr.toZone())
        return reply.pack()

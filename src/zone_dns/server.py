"""Server entry point and lifecycle management."""
from __future__ import annotations

import asyncio
import logging
import socket

from .config import Settings
from .protocol import DNSUDPProtocol
from .reload import ReloadSupervisor, initialize


async def serve(settings: Settings, host: str = "0.0.0.0") -> None:
    """Run the asynchronous UDP DNS server.

    Loads the first zone snapshot, binds a UDP socket, starts the reload
    loop and runs until cancelled.

    Args:
        settings: Effective configuration.
        host (str, optional): IP address to bind to. Defaults to all interfaces.

    Raises:
        ZoneLoadError: If the initial zone cannot be loaded.
        OSError: If the socket cannot be bound.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    handle = initialize(settings.hosts_file)
    loop = asyncio.get_running_loop()

    transport, _ = await loop.create_datagram_endpoint(
        lambda: DNSUDPProtocol(handle, settings.fallback_dns),
        local_addr=(host, settings.listen_port),
        family=socket.AF_INET,
    )
    if settings.fallback_dns:
        logger.info("forwarding unanswered queries to %s", settings.fallback_dns)

    supervisor: ReloadSupervisor | None = None
    if settings.poll_freq > 0:
        supervisor = ReloadSupervisor(settings.hosts_file, settings.poll_freq, handle)
        supervisor.start()

    try:
        await asyncio.Future()
    except asyncio.CancelledError:
        logger.info("server task cancelled")
    finally:
        logger.info("shutting down…")
        if supervisor is not None:
            await supervisor.stop()
        transport.close()

"""Active zone snapshot and the background reload loop."""
from __future__ import annotations

import asyncio
import logging
import os
import threading

from .errors import ZoneLoadError
from .zone import ZoneStore, load_zone, log_diagnostics

logger = logging.getLogger(__name__)


class ZoneHandle:
    """Holds the currently served `ZoneStore` and its source mtime.

    The pair is replaced as one immutable tuple, so a reader always sees a
    complete store together with the mtime it was loaded from.

    Attributes:
        store: Store answering queries right now.
        mtime_ns: Modification time of the source at the last good load.
    """

    def __init__(self, store: ZoneStore, mtime_ns: int = 0) -> None:
        self._lock = threading.Lock()
        self._state: tuple[ZoneStore, int] = (store, mtime_ns)

    @property
    def store(self) -> ZoneStore:
        """Store answering queries right now."""
        return self._state[0]

    @property
    def mtime_ns(self) -> int:
        """Source mtime, in nanoseconds, of the last successful load."""
        return self._state[1]

    def swap(self, store: ZoneStore, mtime_ns: int) -> None:
        """Install `store` as the active snapshot."""
        with self._lock:
            self._state = (store, mtime_ns)


def initialize(path: str) -> ZoneHandle:
    """Load the first snapshot from `path`.

    Args:
        path: Zone file path.

    Returns:
        Handle wrapping the loaded store.

    Raises:
        ZoneLoadError: If the file is unreadable or contains no usable record.
    """
    try:
        st = os.stat(path)
    except OSError as exc:
        raise ZoneLoadError(f"cannot stat zone file {path}: {exc}") from exc

    store, diagnostics = load_zone(path)
    log_diagnostics(path, diagnostics)
    if not len(store):
        raise ZoneLoadError(f"zone file {path} has no usable records")

    logger.info("zone loaded from %s: %d records", path, len(store))
    return ZoneHandle(store, st.st_mtime_ns)


class ReloadSupervisor:
    """Polls the zone file and swaps in a new snapshot when it changes.

    Args:
        path: Zone file path.
        interval: Seconds between checks.
        handle: Snapshot holder shared with the query handlers.
    """

    def __init__(self, path: str, interval: float, handle: ZoneHandle) -> None:
        self.path = path
        self.interval = interval
        self.handle = handle
        self._stopping = asyncio.Event()
        self._task: asyncio.Task | None = None

    def check_once(self) -> bool:
        """Run one poll step.

        Returns:
            True if a new snapshot was installed.
        """
        try:
            st = os.stat(self.path)
        except OSError as exc:
            logger.warning("cannot stat zone file %s: %s", self.path, exc)
            return False

        if st.st_mtime_ns <= self.handle.mtime_ns:
            return False

        try:
            store, diagnostics = load_zone(self.path)
        except ZoneLoadError as exc:
            logger.error("zone reload failed, keeping previous snapshot: %s", exc)
            return False

        log_diagnostics(self.path, diagnostics)
        self.handle.swap(store, st.st_mtime_ns)
        logger.info("reloaded zone file %s: %d records", self.path, len(store))
        return True

    async def run(self) -> None:
        """Poll until `stop()` is called.

        Each check runs in the default executor so the stat, read and parse
        of a large zone never stall query handling on the event loop.
        """
        loop = asyncio.get_running_loop()
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                await loop.run_in_executor(None, self.check_once)

    def start(self) -> asyncio.Task:
        """Spawn `run()` on the running event loop."""
        self._stopping.clear()
        self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it."""
        self._stopping.set()
        if self._task is not None:
            await self._task
            self._task = None

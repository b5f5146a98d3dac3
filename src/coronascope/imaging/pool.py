"""Bounded execution of pipeline runs off the event loop.

Decoding, thresholding and encoding a full-disk image is CPU-bound and
synchronous. Handlers hand the run to ``AnalysisPool``, which lets at most
``max_concurrent`` runs execute on worker threads; the rest wait for a slot
and are turned away once ``queue_timeout`` elapses.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from coronascope.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUEUE_TIMEOUT_SECONDS: float = 5.0


class AnalysisPool:
    """Worker threads plus a slot limit shared by every request."""

    def __init__(self, settings: Settings, queue_timeout: float = QUEUE_TIMEOUT_SECONDS) -> None:
        self.queue_timeout = queue_timeout
        self._slots = asyncio.Semaphore(settings.max_concurrent)
        self._executor = ThreadPoolExecutor(
            max_workers=settings.max_concurrent,
            thread_name_prefix="coronal-analysis",
        )
        self._lock = threading.Lock()
        self._running = 0
        self._waiting = 0

    def _adjust(self, *, running: int = 0, waiting: int = 0) -> None:
        with self._lock:
            self._running += running
            self._waiting += waiting

    @asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        self._adjust(waiting=1)
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.queue_timeout)
        except TimeoutError:
            logger.warning("No analysis slot free after %.1fs, rejecting request", self.queue_timeout)
            raise
        finally:
            self._adjust(waiting=-1)

        self._adjust(running=1)
        try:
            yield
        finally:
            self._slots.release()
            self._adjust(running=-1)

    async def run(self, func: Callable[..., T], *args: object) -> T:
        """Execute ``func(*args)`` on a worker thread once a slot is free.

        Raises:
            TimeoutError: If every slot stays busy for ``queue_timeout`` seconds.
        """
        async with self._slot():
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, func, *args)

    @property
    def active_count(self) -> int:
        """Pipeline runs currently executing."""
        with self._lock:
            return self._running

    @property
    def queue_depth(self) -> int:
        """Requests waiting for a slot."""
        with self._lock:
            return self._waiting

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

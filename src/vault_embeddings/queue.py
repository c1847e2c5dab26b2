"""EditQueue — trailing-edge debounce that coalesces document edits."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from vault_embeddings.utils import is_excluded_path

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)

_JOIN_POLL_INTERVAL = 0.01  # seconds


class EditQueue:
    """Turns bursts of change notifications into one sync call per document.

    Every :meth:`notify` adds the path to a pending set and re-arms a timer;
    the timer fires after *delay* seconds without further notifications.
    A firing snapshots and clears the pending set, then calls *process* for
    each path sequentially.  Firings never overlap: one that arrives while a
    run is in flight is deferred until the run completes.  Paths that were
    queued during a run are processed right after it, without waiting for
    another quiet period.

    Must be used from within a running event loop.
    """

    def __init__(
        self,
        process: Callable[[str], Awaitable[Any]],
        *,
        delay: float,
        excluded_folders: Iterable[str] = (),
    ) -> None:
        self._process = process
        self._delay = delay
        self._excluded_folders = tuple(excluded_folders)

        self._pending: set[str] = set()
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._deferred = False
        self._stopping = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def notify(self, path: str) -> None:
        """Record a change to *path* and restart the quiet period."""
        self._pending.add(path)
        self._arm(self._delay)

    async def flush(self) -> None:
        """Process everything pending now, after any in-flight run."""
        self._cancel_timer()
        if self._task is not None and not self._task.done():
            await self._task
        self._cancel_timer()
        if self._pending:
            self._task = asyncio.get_running_loop().create_task(self._run())
            await self._task

    async def join(self) -> None:
        """Wait until no timer is armed and no run is in flight."""
        while self._timer is not None or self._running:
            if self._task is not None and not self._task.done():
                await self._task
            else:
                await asyncio.sleep(_JOIN_POLL_INTERVAL)

    def cancel(self) -> None:
        """Disarm the timer and stop an in-flight run before its next document.

        Paths the stopped run did not reach go back to the pending set.
        """
        self._cancel_timer()
        if self._running:
            self._stopping = True

    async def close(self) -> None:
        """Cancel and wait for an in-flight run to wind down."""
        self.cancel()
        if self._task is not None and not self._task.done():
            await self._task

    @property
    def pending(self) -> frozenset[str]:
        return frozenset(self._pending)

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _arm(self, delay: float) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._fire)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        if self._running:
            self._deferred = True
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        self._running = True
        self._stopping = False
        paths = sorted(self._pending)
        self._pending.clear()

        try:
            for position, path in enumerate(paths):
                if self._stopping:
                    self._pending.update(paths[position:])
                    logger.info("Edit queue stopped; %d paths left pending", len(paths) - position)
                    break
                if is_excluded_path(path, self._excluded_folders):
                    logger.debug("Skipping excluded path %s", path)
                    continue
                try:
                    await self._process(path)
                except Exception:
                    logger.warning("Auto-embed failed for %s", path, exc_info=True)
                else:
                    logger.debug("Auto-embedded %s", path)
        finally:
            self._running = False

        deferred, self._deferred = self._deferred, False
        if self._stopping:
            self._stopping = False
            return
        if self._pending:
            self._arm(0)
        elif deferred:
            logger.debug("Deferred firing found nothing pending")

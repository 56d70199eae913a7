"""Single worker thread applying table updates to the forwarding plane."""

from __future__ import annotations

import logging
import queue
from threading import Event, Thread
from typing import Optional

from bgtables.reconciler import ReconcileResult, RouteReconciler

from .events import TableUpdate

LOG = logging.getLogger(__name__)

FULL = "full"
INCREMENTAL = "incremental"


class SyncWorker(Thread):
    """Serialize reconciliation passes off the feed's receive loop.

    Updates are queued in a bounded queue.  In ``full`` mode every update
    carries the complete table, so when the queue is full the oldest pending
    update is dropped in favour of the new one.  In ``incremental`` mode each
    update matters and the feed blocks until there is room.
    """

    def __init__(
        self,
        reconciler: RouteReconciler,
        stop_event: Event,
        *,
        mode: str = FULL,
        queue_size: int = 16,
        poll_interval: float = 0.5,
    ) -> None:
        if mode not in (FULL, INCREMENTAL):
            raise ValueError(f"unsupported sync mode '{mode}'")
        super().__init__(daemon=True, name="SyncWorker")
        self._reconciler = reconciler
        self._stop_event = stop_event
        self._mode = mode
        self._queue: "queue.Queue[TableUpdate]" = queue.Queue(maxsize=queue_size)
        self._poll_interval = poll_interval

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, update: TableUpdate) -> None:
        if update.is_empty:
            return
        if self._mode == INCREMENTAL:
            self._queue.put(update)
            return
        while True:
            try:
                self._queue.put_nowait(update)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self._queue.task_done()
                    LOG.debug("sync queue full, dropped superseded table update")
                except queue.Empty:
                    pass

    def run(self) -> None:
        LOG.info("Sync worker started (mode=%s)", self._mode)
        while not self._stop_event.is_set():
            try:
                update = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            try:
                self.process(update)
            except Exception:  # pragma: no cover - logged and continued
                LOG.exception("route sync pass failed")
            finally:
                self._queue.task_done()
        LOG.info("Sync worker stopped")

    def process(self, update: TableUpdate) -> Optional[ReconcileResult]:
        if update.is_empty:
            return None
        if self._mode == FULL:
            result = self._reconciler.sync(update.table)
        else:
            result = self._reconciler.apply_all(update.changed)
        for error in result.errors:
            LOG.debug("sync error: %s", error)
        return result

    def drain(self) -> None:
        """Process everything queued so far on the calling thread."""

        while True:
            try:
                update = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                self.process(update)
            finally:
                self._queue.task_done()

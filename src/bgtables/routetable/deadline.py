"""Per-call deadline for blocking route table backends."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from threading import Lock
from typing import Callable, List, Optional, TypeVar

from ..errors import ForwardingPlaneFailure
from ..model import RouteEntry
from .base import RouteTable

LOG = logging.getLogger(__name__)

T = TypeVar("T")


class DeadlineRouteTable(RouteTable):
    """Run each call of ``inner`` on a single worker thread and give up after ``timeout``.

    An expired call is reported as a :class:`ForwardingPlaneFailure` for that
    route.  The underlying call cannot be interrupted and keeps running; until
    it returns, every further call fails immediately instead of racing it, so
    mutations reach ``inner`` in the order they were issued.
    """

    def __init__(self, inner: RouteTable, timeout: float) -> None:
        self._inner = inner
        self._timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="route-table")
        self._expired: Optional[Future] = None
        self._lock = Lock()

    @property
    def inner(self) -> RouteTable:
        return self._inner

    @property
    def busy(self) -> bool:
        """True while a call that already timed out is still running."""

        expired = self._expired
        return expired is not None and not expired.done()

    def _call(self, operation: str, target: object, func: Callable[..., T], *args) -> T:
        with self._lock:
            if self.busy:
                raise ForwardingPlaneFailure(
                    operation, target, "an expired call is still in flight"
                )
            self._expired = None
            future = self._executor.submit(func, *args)
            try:
                return future.result(timeout=self._timeout)
            except FutureTimeout:
                self._expired = future
                LOG.warning("%s %s timed out after %ss", operation, target, self._timeout)
                raise ForwardingPlaneFailure(
                    operation, target, f"timed out after {self._timeout}s"
                ) from None

    def list(self) -> List[RouteEntry]:
        return self._call("list", "routes", self._inner.list)

    def add_or_replace(self, entry: RouteEntry) -> None:
        self._call("replace", entry, self._inner.add_or_replace, entry)

    def delete(self, entry: RouteEntry) -> None:
        self._call("delete", entry, self._inner.delete, entry)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self._inner.close()

"""In-memory route table used by tests and dry runs."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import ForwardingPlaneFailure
from ..model import RouteEntry
from .base import RouteTable

LOG = logging.getLogger(__name__)


class MemoryRouteTable(RouteTable):
    """Dictionary backed table that records every mutation.

    Parameters
    ----------
    routes:
        Initial content of the table.
    reject:
        Prefix keys for which every mutation fails, to exercise partial
        failure handling.
    """

    def __init__(
        self,
        routes: Iterable[RouteEntry] = (),
        reject: Optional[Iterable[str]] = None,
    ) -> None:
        self._routes: Dict[str, RouteEntry] = {r.key: r for r in routes}
        self._reject = set(reject or ())
        self._lock = Lock()
        self.operations: List[Tuple[str, str]] = []

    def list(self) -> List[RouteEntry]:
        with self._lock:
            return list(self._routes.values())

    def add_or_replace(self, entry: RouteEntry) -> None:
        self._check("replace", entry)
        with self._lock:
            self._routes[entry.key] = entry
            self.operations.append(("replace", entry.key))
        LOG.debug("memory table replaced %s", entry)

    def delete(self, entry: RouteEntry) -> None:
        self._check("delete", entry)
        with self._lock:
            if entry.key not in self._routes:
                raise ForwardingPlaneFailure("delete", entry, "no such route")
            del self._routes[entry.key]
            self.operations.append(("delete", entry.key))
        LOG.debug("memory table deleted %s", entry)

    def get(self, key: str) -> Optional[RouteEntry]:
        with self._lock:
            return self._routes.get(key)

    def _check(self, operation: str, entry: RouteEntry) -> None:
        if entry.key in self._reject:
            raise ForwardingPlaneFailure(operation, entry, "rejected")

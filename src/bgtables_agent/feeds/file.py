"""File-based best-path feed."""

from __future__ import annotations

import json
import logging
from pathlib import Path as FilePath
from threading import Event, Thread
from typing import Dict, Hashable, List, Optional

from bgtables.model import IPV4_UNICAST, IPV6_UNICAST, Family, Path

from ..events import TableUpdate
from .paths import build_path, path_key
from .table import BestPathTable

LOG = logging.getLogger(__name__)

SOURCE = "file"


def _default_family(prefix: str) -> Family:
    return IPV6_UNICAST if ":" in prefix else IPV4_UNICAST


def _extract_paths(payload: dict) -> Dict[Hashable, Path]:
    routes = payload.get("routes")
    if routes is None:
        raise ValueError("routes file missing 'routes' key")

    paths: Dict[Hashable, Path] = {}
    for route in routes:
        prefix = route.get("prefix")
        if prefix is None:
            continue
        family_name = route.get("family")
        family = Family.from_name(family_name) if family_name else _default_family(prefix)
        path = build_path(family, str(prefix), route.get("next_hop"), source=SOURCE)
        paths[path_key(path)] = path
    return paths


class FileTableFeed(Thread):
    """Poll a JSON routes file and publish the differences as table updates.

    The file holds the complete table::

        {"routes": [{"prefix": "10.0.0.0/24", "next_hop": "192.0.2.1"}]}
    """

    def __init__(
        self,
        worker,
        path: FilePath,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True, name="FileTableFeed")
        self._worker = worker
        self._path = FilePath(path)
        self._interval = interval
        self._stop_event = stop_event
        self._table = BestPathTable()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file feed encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> Optional[TableUpdate]:
        if not self._path.exists():
            LOG.debug("routes file %s does not exist yet", self._path)
            return None

        try:
            payload = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse routes file %s: %s", self._path, exc)
            return None

        try:
            desired = _extract_paths(payload)
        except (AttributeError, TypeError, ValueError) as exc:
            LOG.warning("invalid routes file %s: %s", self._path, exc)
            return None

        changed: List[Path] = []
        for key in set(self._table.keys()) - set(desired):
            best = self._table.best(key)
            if best is None:
                continue
            LOG.debug("route %s removed", best.nlri)
            change = self._table.withdraw(best)
            if change is not None:
                changed.append(change)

        for path in desired.values():
            change = self._table.announce(path)
            if change is not None:
                LOG.debug("route %s updated", path.nlri)
                changed.append(change)

        if not changed:
            return None
        update = TableUpdate(changed=changed, table=self._table.paths())
        self._worker.submit(update)
        return update

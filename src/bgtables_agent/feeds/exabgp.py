"""ExaBGP process API feed.

ExaBGP runs the agent as a helper process (``encoder json``) and writes one
JSON document per line on its stdin.  Only ``update`` and ``state`` messages
matter here; everything else (keepalives, opens, notifications) is ignored.
"""

from __future__ import annotations

import json
import logging
from threading import Event, Thread
from typing import IO, Any, Dict, List, Optional

from bgtables.model import Family, Path

from ..events import TableUpdate
from .paths import build_path, other_attributes
from .table import BestPathTable

LOG = logging.getLogger(__name__)


class ExaBGPFeed(Thread):
    """Read ExaBGP JSON messages from ``stream`` and publish table updates."""

    def __init__(
        self,
        worker,
        stream: IO[str],
        stop_event: Event,
        table: Optional[BestPathTable] = None,
        *,
        snapshot: bool = True,
    ) -> None:
        super().__init__(daemon=True, name="ExaBGPFeed")
        self._worker = worker
        self._stream = stream
        self._stop_event = stop_event
        self._table = table or BestPathTable()
        # only full reconciliation reads the table snapshot
        self._snapshot = snapshot

    @property
    def table(self) -> BestPathTable:
        return self._table

    def run(self) -> None:
        LOG.info("Starting route monitoring from ExaBGP")
        for line in self._stream:
            if self._stop_event.is_set():
                break
            try:
                self.handle_line(line)
            except Exception:  # pragma: no cover - logged and skipped
                LOG.exception("failed to process ExaBGP message")
        else:
            LOG.info("Stream closed by ExaBGP")
            self._stop_event.set()

    def handle_line(self, line: str) -> Optional[TableUpdate]:
        line = line.strip()
        if not line:
            return None
        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse ExaBGP message %r: %s", line[:120], exc)
            return None
        if not isinstance(message, dict):
            LOG.debug("ignoring non-object ExaBGP message: %r", line[:120])
            return None

        changed = self.changes_for(message)
        if not changed:
            return None
        table = self._table.paths() if self._snapshot else ()
        update = TableUpdate(changed=changed, table=table)
        self._worker.submit(update)
        return update

    def changes_for(self, message: Dict[str, Any]) -> List[Path]:
        kind = message.get("type")
        neighbor = message.get("neighbor") or {}
        source = (neighbor.get("address") or {}).get("peer")

        if kind == "state":
            state = neighbor.get("state")
            if state == "down":
                LOG.info("peer %s went down, withdrawing its routes", source)
                return self._table.drop_source(source)
            LOG.debug("peer %s state %s", source, state)
            return []
        if kind != "update":
            return []

        update = (neighbor.get("message") or {}).get("update") or {}
        if "eor" in update:
            LOG.debug("end-of-RIB from %s: %s", source, update["eor"])
            return []

        changed: List[Path] = []
        for path in self._withdrawn(update.get("withdraw") or {}, source):
            change = self._table.withdraw(path)
            if change is not None:
                changed.append(change)

        attributes = other_attributes(update.get("attribute"))
        for path in self._announced(update.get("announce") or {}, source, attributes):
            change = self._table.announce(path)
            if change is not None:
                changed.append(change)
        return changed

    def _withdrawn(self, section: Dict[str, Any], source: Optional[str]) -> List[Path]:
        paths = []
        for family_name, nlris in section.items():
            family = _family(family_name)
            if family is None:
                continue
            for nlri in nlris or []:
                try:
                    paths.append(build_path(family, nlri, withdraw=True, source=source))
                except ValueError as exc:
                    LOG.warning("skipping withdrawn %s NLRI %r: %s", family_name, nlri, exc)
        return paths

    def _announced(
        self, section: Dict[str, Any], source: Optional[str], attributes
    ) -> List[Path]:
        paths = []
        for family_name, by_nexthop in section.items():
            family = _family(family_name)
            if family is None or not isinstance(by_nexthop, dict):
                continue
            for next_hop, nlris in by_nexthop.items():
                hop = None if next_hop in ("null", "no-nexthop") else next_hop
                for nlri in nlris or []:
                    try:
                        paths.append(
                            build_path(
                                family,
                                nlri,
                                hop,
                                source=source,
                                attributes=attributes,
                            )
                        )
                    except ValueError as exc:
                        LOG.warning("skipping announced %s NLRI %r: %s", family_name, nlri, exc)
        return paths


def _family(name: str) -> Optional[Family]:
    try:
        return Family.from_name(name)
    except ValueError:
        LOG.warning("ignoring unknown family '%s'", name)
        return None

"""Converge the forwarding plane on the current best-path table.

Two modes are offered:

* :meth:`RouteReconciler.sync` runs a full reconciliation pass: the desired
  route set is rebuilt from a complete best-path table and diffed against the
  routes listed from the forwarding plane.  Desired routes are replaced first,
  stale routes deleted afterwards.
* :meth:`RouteReconciler.apply` folds a single path into the forwarding plane
  (upsert, or delete on withdrawal).  It needs no snapshot of the existing
  table but cannot recover from lost updates.

Failures are isolated: a path that does not decode is dropped from the pass
and a route the backend rejects is reported, while everything else in the
batch is still attempted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .dispatcher import FamilyDispatcher, build_default_dispatcher
from .errors import BGTablesError, ForwardingPlaneFailure
from .model import Path, RouteEntry, route_map
from .routetable import RouteTable

LOG = logging.getLogger(__name__)


class PassState(Enum):
    IDLE = "idle"
    COMPUTING_DESIRED = "computing-desired"
    APPLYING_ADDS = "applying-adds"
    APPLYING_DELETES = "applying-deletes"


@dataclass
class ReconcileResult:
    """Outcome of a pass; errors are collected rather than raised."""

    replaced: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    errors: List[BGTablesError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge(self, other: "ReconcileResult") -> "ReconcileResult":
        self.replaced.extend(other.replaced)
        self.deleted.extend(other.deleted)
        self.errors.extend(other.errors)
        return self

    def summary(self) -> str:
        return f"+{len(self.replaced)} -{len(self.deleted)} !{len(self.errors)}"


@dataclass
class ReconcilerState:
    """Mutable runtime state tracked by the reconciler."""

    phase: PassState = PassState.IDLE
    passes: int = 0
    last_result: Optional[ReconcileResult] = None


class RouteReconciler:
    """Apply best-path events to a :class:`~bgtables.routetable.RouteTable`."""

    def __init__(
        self,
        table: RouteTable,
        dispatcher: Optional[FamilyDispatcher] = None,
    ) -> None:
        self._table = table
        self._dispatcher = dispatcher or build_default_dispatcher()
        self._state = ReconcilerState()
        self._lock = Lock()

    @property
    def state(self) -> PassState:
        return self._state.phase

    @property
    def last_result(self) -> Optional[ReconcileResult]:
        return self._state.last_result

    # ------------------------------------------------------------------
    # Desired state
    # ------------------------------------------------------------------
    def build_desired(
        self, paths: Iterable[Path]
    ) -> Tuple[Dict[str, RouteEntry], List[BGTablesError]]:
        """Map every advertised path to its routes, keyed by prefix.

        Withdrawn paths never contribute.  Paths that fail to decode are
        dropped and their error returned alongside the desired set.
        """

        desired: Dict[str, RouteEntry] = {}
        errors: List[BGTablesError] = []
        for path in paths:
            if path is not None and path.is_withdraw:
                continue
            try:
                routes = self._dispatcher.handle(path)
            except BGTablesError as exc:
                LOG.warning("Failed to handle path %s: %s", path, exc)
                errors.append(exc)
                continue
            for route in routes:
                desired[route.key] = route
        return desired, errors

    # ------------------------------------------------------------------
    # Forwarding plane mutations
    # ------------------------------------------------------------------
    def reconcile(
        self,
        existing: Mapping[str, RouteEntry],
        desired: Mapping[str, RouteEntry],
    ) -> ReconcileResult:
        """Replace every desired route, then delete existing ones not desired."""

        with self._lock:
            try:
                return self._reconcile(existing, desired)
            finally:
                self._state.phase = PassState.IDLE

    def _reconcile(
        self,
        existing: Mapping[str, RouteEntry],
        desired: Mapping[str, RouteEntry],
    ) -> ReconcileResult:
        result = ReconcileResult()
        self._state.phase = PassState.APPLYING_ADDS
        for key, route in desired.items():
            if self._mutate(self._table.add_or_replace, route, result):
                result.replaced.append(key)

        self._state.phase = PassState.APPLYING_DELETES
        for key, route in existing.items():
            if key in desired:
                continue
            if self._mutate(self._table.delete, route, result):
                result.deleted.append(key)
        return result

    def _mutate(self, operation, route: RouteEntry, result: ReconcileResult) -> bool:
        try:
            operation(route)
        except ForwardingPlaneFailure as exc:
            LOG.error("Failed to manage route %s: %s", route.key, exc)
            result.errors.append(exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def sync(self, paths: Iterable[Path]) -> ReconcileResult:
        """Run one full reconciliation pass against the best-path ``paths``."""

        with self._lock:
            try:
                self._state.phase = PassState.COMPUTING_DESIRED
                try:
                    existing = route_map(self._table.list())
                except ForwardingPlaneFailure as exc:
                    LOG.error("Failed to list forwarding plane routes: %s", exc)
                    return self._finish(ReconcileResult(errors=[exc]))
                desired, errors = self.build_desired(paths)
                result = self._reconcile(existing, desired)
                result.errors[:0] = errors
                return self._finish(result)
            finally:
                self._state.phase = PassState.IDLE

    def apply(self, path: Path) -> ReconcileResult:
        """Fold a single path into the forwarding plane."""

        with self._lock:
            try:
                return self._finish(self._apply(path))
            finally:
                self._state.phase = PassState.IDLE

    def apply_all(self, paths: Iterable[Path]) -> ReconcileResult:
        result = ReconcileResult()
        for path in paths:
            result.merge(self.apply(path))
        return result

    def _apply(self, path: Path) -> ReconcileResult:
        result = ReconcileResult()
        self._state.phase = PassState.COMPUTING_DESIRED
        try:
            routes = route_map(self._dispatcher.handle(path))
        except BGTablesError as exc:
            LOG.warning("Failed to handle path %s: %s", path, exc)
            result.errors.append(exc)
            return result

        if path.is_withdraw:
            self._state.phase = PassState.APPLYING_DELETES
            for key, route in routes.items():
                if self._mutate(self._table.delete, route, result):
                    result.deleted.append(key)
        else:
            self._state.phase = PassState.APPLYING_ADDS
            for key, route in routes.items():
                if self._mutate(self._table.add_or_replace, route, result):
                    result.replaced.append(key)
        return result

    def _finish(self, result: ReconcileResult) -> ReconcileResult:
        self._state.passes += 1
        self._state.last_result = result
        if result.replaced or result.deleted or result.errors:
            LOG.info("Route sync pass %d: %s", self._state.passes, result.summary())
        else:
            LOG.debug("Route sync pass %d: no changes", self._state.passes)
        return result

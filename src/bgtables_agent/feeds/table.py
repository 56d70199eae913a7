"""Per-peer path table turning raw announcements into best-path changes."""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict, Hashable, List, Optional

from bgtables.model import Path

from .paths import path_key


class BestPathTable:
    """Track the paths each peer announced and pick one best path per prefix.

    Selection is deliberately simple: the earliest announcement still present
    wins, matching BGP's "prefer the oldest route" tie-breaker.  Every mutation
    returns the resulting best-path change, or ``None`` when the best path is
    unaffected.
    """

    def __init__(self) -> None:
        self._entries: Dict[Hashable, Dict[Optional[str], Path]] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def announce(self, path: Path) -> Optional[Path]:
        key = path_key(path)
        with self._lock:
            peers = self._entries.setdefault(key, {})
            previous_best = self._best(peers)
            if peers.get(path.source) == path:
                return None
            peers[path.source] = path
            best = self._best(peers)
        return best if best != previous_best else None

    def withdraw(self, path: Path) -> Optional[Path]:
        key = path_key(path)
        with self._lock:
            peers = self._entries.get(key)
            if not peers or path.source not in peers:
                return None
            previous_best = self._best(peers)
            del peers[path.source]
            if not peers:
                del self._entries[key]
                return _as_withdraw(previous_best)
            best = self._best(peers)
        return best if best != previous_best else None

    def drop_source(self, source: Optional[str]) -> List[Path]:
        """Forget everything learned from ``source``; return the changes."""

        with self._lock:
            learned = [
                peers[source]
                for peers in self._entries.values()
                if source in peers
            ]
        changes = []
        for path in learned:
            change = self.withdraw(path)
            if change is not None:
                changes.append(change)
        return changes

    def keys(self) -> List[Hashable]:
        with self._lock:
            return list(self._entries)

    def best(self, key: Hashable) -> Optional[Path]:
        with self._lock:
            return self._best(self._entries.get(key, {}))

    def paths(self) -> List[Path]:
        """Current best path of every destination."""

        with self._lock:
            return [self._best(peers) for peers in self._entries.values()]

    @staticmethod
    def _best(peers: Dict[Optional[str], Path]) -> Optional[Path]:
        return next(iter(peers.values()), None)


def _as_withdraw(path: Path) -> Path:
    return replace(path, attributes=(), is_withdraw=True)

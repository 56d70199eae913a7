"""Event primitives published by the update feeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from bgtables.model import Path


@dataclass(frozen=True)
class TableUpdate:
    """One notification from the best-path feed.

    ``changed`` holds the paths carried by the notification itself, including
    withdrawals.  ``table`` is the feed's complete best-path table after the
    notification has been applied, so that full reconciliation can run
    without keeping history.
    """

    changed: Sequence[Path]
    table: Sequence[Path] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.changed

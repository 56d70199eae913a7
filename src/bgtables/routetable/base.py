"""Abstract forwarding-plane interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..model import RouteEntry

# From /usr/include/linux/rtnetlink.h
RT_TABLE_MAIN = 254
RTPROT_BGP = 186


class RouteTable(ABC):
    """A routing table the reconciler can read and mutate.

    Implementations raise :class:`~bgtables.errors.ForwardingPlaneFailure`
    when the backend rejects an operation.
    """

    @abstractmethod
    def list(self) -> List[RouteEntry]:
        """Return the routes currently owned by this table."""

    @abstractmethod
    def add_or_replace(self, entry: RouteEntry) -> None:
        """Install ``entry``, replacing any route with the same prefix."""

    @abstractmethod
    def delete(self, entry: RouteEntry) -> None:
        """Remove the route for ``entry.prefix``."""

    def close(self) -> None:
        """Release backend resources."""

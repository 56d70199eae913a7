"""Per address-family handlers used by :class:`~bgtables.dispatcher.FamilyDispatcher`."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List

from . import decoder
from .model import Path, RouteEntry

LOG = logging.getLogger(__name__)


class FamilyHandler(ABC):
    """Base class for handlers registered with the dispatcher."""

    @abstractmethod
    def routes_for(self, path: Path) -> List[RouteEntry]:
        """Return the forwarding-plane routes described by ``path``."""


class UnicastHandler(FamilyHandler):
    """Decode IP unicast paths into routes.

    Withdrawn paths yield entries without a next hop; they only identify the
    prefixes to remove.
    """

    def routes_for(self, path: Path) -> List[RouteEntry]:
        next_hop, prefixes = decoder.decode_routes(path)
        return [RouteEntry(prefix=prefix, next_hop=next_hop) for prefix in prefixes]


class InertHandler(FamilyHandler):
    """Accept a family without translating it to forwarding-plane state."""

    def __init__(self, label: str) -> None:
        self._label = label

    @property
    def label(self) -> str:
        return self._label

    def routes_for(self, path: Path) -> List[RouteEntry]:
        LOG.debug(
            "%s path from %s ignored (withdraw=%s): %s",
            self._label,
            path.source,
            path.is_withdraw,
            path.nlri,
        )
        return []


def build_evpn_handler() -> InertHandler:
    return InertHandler("EVPN")


def build_flowspec_handler() -> InertHandler:
    return InertHandler("Flow-Spec")

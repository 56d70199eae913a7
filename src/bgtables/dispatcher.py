"""Address-family dispatch for best-path events."""

from __future__ import annotations

from typing import Dict, List, Optional

from .errors import MissingFamily, UnsupportedAddressFamily
from .handlers import (
    FamilyHandler,
    UnicastHandler,
    build_evpn_handler,
    build_flowspec_handler,
)
from .model import (
    IPV4_FLOWSPEC,
    IPV4_LABELED_UNICAST,
    IPV4_UNICAST,
    IPV6_LABELED_UNICAST,
    IPV6_UNICAST,
    L2VPN_EVPN,
    Family,
    Path,
    RouteEntry,
)


class FamilyDispatcher:
    """Route paths to the handler registered for their (AFI, SAFI) pair."""

    def __init__(self) -> None:
        self._handlers: Dict[Family, FamilyHandler] = {}

    def register(self, family: Family, handler: FamilyHandler) -> None:
        if family in self._handlers:
            raise ValueError(f"handler for '{family}' already registered")
        self._handlers[family] = handler

    def unregister(self, family: Family) -> None:
        self._handlers.pop(family, None)

    def handler_for(self, family: Family) -> Optional[FamilyHandler]:
        return self._handlers.get(family)

    @property
    def families(self) -> List[Family]:
        return list(self._handlers)

    def handle(self, path: Optional[Path]) -> List[RouteEntry]:
        if path is None:
            raise MissingFamily("path is nil")
        family = path.family
        if family is None or not family.is_set:
            raise MissingFamily("AFI or SAFI is not set")

        handler = self._handlers.get(family)
        if handler is None:
            raise UnsupportedAddressFamily(family.afi, family.safi)
        return handler.routes_for(path)


def build_default_dispatcher() -> FamilyDispatcher:
    """Dispatcher wired with the handlers the agent ships with."""

    unicast = UnicastHandler()
    dispatcher = FamilyDispatcher()
    dispatcher.register(IPV4_UNICAST, unicast)
    dispatcher.register(IPV6_UNICAST, unicast)
    # labels are dropped; the kernel route only needs prefix and next hop
    dispatcher.register(IPV4_LABELED_UNICAST, unicast)
    dispatcher.register(IPV6_LABELED_UNICAST, unicast)
    dispatcher.register(L2VPN_EVPN, build_evpn_handler())
    dispatcher.register(IPV4_FLOWSPEC, build_flowspec_handler())
    return dispatcher

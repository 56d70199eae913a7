"""Kernel routing table backend built on pyroute2."""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import List

import pyroute2
from pyroute2.netlink.exceptions import NetlinkError

from ..errors import ForwardingPlaneFailure
from ..model import DestinationPrefix, RouteEntry
from .base import RT_TABLE_MAIN, RTPROT_BGP, RouteTable

LOG = logging.getLogger(__name__)

_FAMILIES = {4: socket.AF_INET, 6: socket.AF_INET6}
_ANY = {socket.AF_INET: "0.0.0.0", socket.AF_INET6: "::"}


class NetlinkRouteTable(RouteTable):
    """Manage the routes of one kernel table installed with one protocol.

    Only routes tagged with ``protocol`` in ``table`` are listed, so routes
    installed by anything else are never candidates for deletion.
    """

    def __init__(self, table: int = RT_TABLE_MAIN, protocol: int = RTPROT_BGP) -> None:
        self._table = table
        self._protocol = protocol

    def list(self) -> List[RouteEntry]:
        entries: List[RouteEntry] = []
        try:
            with pyroute2.IPRoute() as ipr:
                for family in _FAMILIES.values():
                    for route in ipr.get_routes(family=family, table=self._table):
                        entry = self._to_entry(route, family)
                        if entry is not None:
                            entries.append(entry)
        except (NetlinkError, OSError) as exc:
            raise ForwardingPlaneFailure("list", f"table {self._table}", exc) from exc
        return entries

    def _to_entry(self, route, family):
        if route.get("proto") != self._protocol:
            return None
        table = route.get_attr("RTA_TABLE") or route.get("table")
        if table != self._table:
            return None
        # default routes carry no RTA_DST
        dst = route.get_attr("RTA_DST") or _ANY[family]
        prefix = DestinationPrefix.from_string(f"{dst}/{route.get('dst_len')}")
        gateway = route.get_attr("RTA_GATEWAY")
        next_hop = ipaddress.ip_address(gateway) if gateway else None
        return RouteEntry(prefix=prefix, next_hop=next_hop)

    def add_or_replace(self, entry: RouteEntry) -> None:
        kwargs = self._route_args(entry)
        if entry.next_hop is not None:
            kwargs["gateway"] = str(entry.next_hop)
        self._request("replace", entry, kwargs)
        LOG.info("Updated route: %s", entry)

    def delete(self, entry: RouteEntry) -> None:
        self._request("del", entry, self._route_args(entry))
        LOG.info("Removed route: %s", entry.key)

    def _route_args(self, entry: RouteEntry) -> dict:
        return {
            "dst": entry.key,
            "family": _FAMILIES[entry.prefix.version],
            "table": self._table,
            "proto": self._protocol,
        }

    def _request(self, command: str, entry: RouteEntry, kwargs: dict) -> None:
        try:
            with pyroute2.IPRoute() as ipr:
                ipr.route(command, **kwargs)
        except (NetlinkError, OSError) as exc:
            raise ForwardingPlaneFailure(command, entry, exc) from exc

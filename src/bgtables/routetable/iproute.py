"""Route table backend that shells out to the iproute2 ``ip`` command."""

from __future__ import annotations

import ipaddress
import json
import logging
import subprocess
from typing import Iterable, List, Optional

from ..errors import ForwardingPlaneFailure
from ..model import DestinationPrefix, RouteEntry
from .base import RT_TABLE_MAIN, RTPROT_BGP, RouteTable

LOG = logging.getLogger(__name__)


def run(cmd: Iterable[str], timeout: Optional[float]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        list(cmd), capture_output=True, text=True, check=False, timeout=timeout
    )


class IPCommandRouteTable(RouteTable):
    """Drive the kernel table through ``ip route``.

    Useful where netlink sockets are unavailable to the agent but the ``ip``
    binary can be executed (e.g. through a privileged wrapper).
    """

    def __init__(
        self,
        table: int = RT_TABLE_MAIN,
        protocol: int = RTPROT_BGP,
        *,
        binary: str = "ip",
        timeout: Optional[float] = None,
    ) -> None:
        self._table = table
        self._protocol = protocol
        self._binary = binary
        self._timeout = timeout

    def _scope(self) -> List[str]:
        return ["proto", str(self._protocol), "table", str(self._table)]

    def _execute(self, operation: str, entry: object, cmd: List[str]) -> str:
        try:
            result = run(cmd, self._timeout)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise ForwardingPlaneFailure(operation, entry, exc) from exc
        if result.returncode != 0:
            raise ForwardingPlaneFailure(operation, entry, result.stderr.strip())
        return result.stdout

    def list(self) -> List[RouteEntry]:
        entries: List[RouteEntry] = []
        for flag, any_dst in (("-4", "0.0.0.0/0"), ("-6", "::/0")):
            cmd = [self._binary, "-j", flag, "route", "show", *self._scope()]
            output = self._execute("list", f"table {self._table}", cmd)
            try:
                routes = json.loads(output) if output.strip() else []
            except json.JSONDecodeError as exc:
                raise ForwardingPlaneFailure("list", f"table {self._table}", exc) from exc
            for route in routes:
                dst = route.get("dst")
                if not dst:
                    continue
                if dst == "default":
                    dst = any_dst
                gateway = route.get("gateway")
                entries.append(
                    RouteEntry(
                        prefix=DestinationPrefix.from_string(dst),
                        next_hop=ipaddress.ip_address(gateway) if gateway else None,
                    )
                )
        return entries

    def add_or_replace(self, entry: RouteEntry) -> None:
        cmd = [self._binary, f"-{entry.prefix.version}", "route", "replace", entry.key]
        if entry.next_hop is not None:
            cmd.extend(["via", str(entry.next_hop)])
        cmd.extend(self._scope())
        self._execute("replace", entry, cmd)
        LOG.info("Updated kernel route: %s", entry)

    def delete(self, entry: RouteEntry) -> None:
        cmd = [self._binary, f"-{entry.prefix.version}", "route", "del", entry.key]
        cmd.extend(self._scope())
        self._execute("delete", entry, cmd)
        LOG.info("Removed kernel route: %s", entry.key)

"""YAML configuration loader for the bgtables agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from bgtables.config import DEFAULT_LOCAL_ASN, DEFAULT_ROUTER_ID, BGPConfig, Peer
from bgtables.model import IPV4_UNICAST, IPV6_UNICAST, Family
from bgtables.routetable import RT_TABLE_MAIN, RTPROT_BGP

BACKENDS = ("netlink", "iproute", "memory")
SYNC_MODES = ("full", "incremental")
FEED_TYPES = ("exabgp", "file")


@dataclass
class RouteTableConfig:
    backend: str = "netlink"
    table: int = RT_TABLE_MAIN
    protocol: int = RTPROT_BGP
    timeout: Optional[float] = 5.0
    binary: str = "ip"


@dataclass
class SyncConfig:
    mode: str = "full"
    queue_size: int = 16
    graceful_timeout: float = 5.0


@dataclass
class FeedConfig:
    type: str = "exabgp"
    path: Optional[Path] = None
    interval: float = 5.0


@dataclass
class AgentConfig:
    bgp: BGPConfig = field(default_factory=BGPConfig)
    route_table: RouteTableConfig = field(default_factory=RouteTableConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)


def _parse_families(values: Optional[Iterable[str]]) -> Sequence[Family]:
    if not values:
        return (IPV4_UNICAST, IPV6_UNICAST)
    return tuple(Family.from_name(str(value)) for value in values)


def _parse_peer(entry: dict) -> Peer:
    return Peer(
        ip=str(entry["ip"]),
        asn=int(entry["asn"]),
        description=entry.get("description"),
        families=_parse_families(entry.get("families")),
    )


def _parse_bgp(section: dict) -> BGPConfig:
    peers_data = section.get("peers", [])
    if not isinstance(peers_data, list):
        raise ValueError("'bgp.peers' must be a list")
    peers: List[Peer] = [_parse_peer(peer) for peer in peers_data]
    return BGPConfig(
        local_asn=int(section.get("local_asn", DEFAULT_LOCAL_ASN)),
        router_id=str(section.get("router_id", DEFAULT_ROUTER_ID)),
        peers=tuple(peers),
    )


def _parse_route_table(section: dict) -> RouteTableConfig:
    backend = str(section.get("backend", "netlink"))
    if backend not in BACKENDS:
        raise ValueError(f"unsupported route table backend '{backend}'")
    timeout = section.get("timeout", 5.0)
    return RouteTableConfig(
        backend=backend,
        table=int(section.get("table", RT_TABLE_MAIN)),
        protocol=int(section.get("protocol", RTPROT_BGP)),
        timeout=float(timeout) if timeout else None,
        binary=str(section.get("binary", "ip")),
    )


def _parse_sync(section: dict) -> SyncConfig:
    mode = str(section.get("mode", "full"))
    if mode not in SYNC_MODES:
        raise ValueError(f"unsupported sync mode '{mode}'")
    queue_size = int(section.get("queue_size", 16))
    if queue_size < 1:
        raise ValueError("'sync.queue_size' must be at least 1")
    return SyncConfig(
        mode=mode,
        queue_size=queue_size,
        graceful_timeout=float(section.get("graceful_timeout", 5.0)),
    )


def _parse_feed(section: dict) -> FeedConfig:
    feed_type = str(section.get("type", "exabgp"))
    if feed_type not in FEED_TYPES:
        raise ValueError(f"unsupported feed type '{feed_type}'")
    path = section.get("path")
    if feed_type == "file" and not path:
        raise ValueError("file feed requires 'path'")
    return FeedConfig(
        type=feed_type,
        path=Path(path) if path else None,
        interval=float(section.get("interval", section.get("poll_interval", 5.0))),
    )


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    return AgentConfig(
        bgp=_parse_bgp(_section(data, "bgp")),
        route_table=_parse_route_table(_section(data, "route_table")),
        sync=_parse_sync(_section(data, "sync")),
        feed=_parse_feed(_section(data, "feed")),
    )

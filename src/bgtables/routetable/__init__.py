"""Forwarding-plane backends."""

from .base import RT_TABLE_MAIN, RTPROT_BGP, RouteTable  # noqa: F401
from .deadline import DeadlineRouteTable  # noqa: F401
from .iproute import IPCommandRouteTable  # noqa: F401
from .memory import MemoryRouteTable  # noqa: F401
from .netlink import NetlinkRouteTable  # noqa: F401

__all__ = [
    "DeadlineRouteTable",
    "IPCommandRouteTable",
    "MemoryRouteTable",
    "NetlinkRouteTable",
    "RT_TABLE_MAIN",
    "RTPROT_BGP",
    "RouteTable",
]

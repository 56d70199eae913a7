"""Data structures shared by the decoder, dispatcher and reconciler.

A :class:`Path` is the already-decoded representation handed over by the BGP
engine: one NLRI, the path attributes and a withdrawal flag.  The decoder turns
it into :class:`DestinationPrefix` values and a next hop, which the reconciler
projects into :class:`RouteEntry` objects keyed by the canonical CIDR text.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

IP_ADDRESS_PREFIX_TYPE_URL = "bgtables/ip-prefix"


class Afi(IntEnum):
    UNKNOWN = 0
    IP = 1
    IP6 = 2
    L2VPN = 25


class Safi(IntEnum):
    UNKNOWN = 0
    UNICAST = 1
    MULTICAST = 2
    MPLS_LABEL = 4
    EVPN = 70
    MPLS_VPN = 128
    FLOW_SPEC_UNICAST = 133


_AFI_NAMES = {Afi.IP: "ipv4", Afi.IP6: "ipv6", Afi.L2VPN: "l2vpn"}
_SAFI_NAMES = {
    Safi.UNICAST: "unicast",
    Safi.MULTICAST: "multicast",
    Safi.MPLS_LABEL: "nlri-mpls",
    Safi.EVPN: "evpn",
    Safi.MPLS_VPN: "mpls-vpn",
    Safi.FLOW_SPEC_UNICAST: "flow",
}


@dataclass(frozen=True)
class Family:
    """Address family pair used as the dispatch key.

    Values are kept as plain integers so that families unknown to
    :class:`Afi`/:class:`Safi` (e.g. ``Family(99, 99)``) remain representable
    and hash the same as their enum counterparts.
    """

    afi: int
    safi: int

    @property
    def is_set(self) -> bool:
        return bool(self.afi) and bool(self.safi)

    @property
    def name(self) -> str:
        """ExaBGP style family name, e.g. ``"ipv4 unicast"``."""

        afi = _AFI_NAMES.get(self.afi, str(int(self.afi)))
        safi = _SAFI_NAMES.get(self.safi, str(int(self.safi)))
        return f"{afi} {safi}"

    @classmethod
    def from_name(cls, name: str) -> "Family":
        try:
            afi_name, safi_name = name.lower().split()
        except ValueError:
            raise ValueError(f"malformed family name '{name}'") from None
        afis = {v: k for k, v in _AFI_NAMES.items()}
        safis = {v: k for k, v in _SAFI_NAMES.items()}
        if afi_name not in afis or safi_name not in safis:
            raise ValueError(f"unknown family '{name}'")
        return cls(afis[afi_name], safis[safi_name])

    def __str__(self) -> str:
        return self.name


IPV4_UNICAST = Family(Afi.IP, Safi.UNICAST)
IPV6_UNICAST = Family(Afi.IP6, Safi.UNICAST)
IPV4_LABELED_UNICAST = Family(Afi.IP, Safi.MPLS_LABEL)
IPV6_LABELED_UNICAST = Family(Afi.IP6, Safi.MPLS_LABEL)
L2VPN_EVPN = Family(Afi.L2VPN, Safi.EVPN)
IPV4_FLOWSPEC = Family(Afi.IP, Safi.FLOW_SPEC_UNICAST)


# ----------------------------------------------------------------------
# NLRI variants
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class IPAddressPrefix:
    """The path's own NLRI for the unicast families."""

    prefix: str
    prefix_len: int
    type_url: ClassVar[str] = IP_ADDRESS_PREFIX_TYPE_URL


@dataclass(frozen=True)
class OpaqueNLRI:
    """NLRI the core does not interpret (EVPN routes, flow-spec rules, ...)."""

    type_url: str
    value: Any = None


NLRI = Union[IPAddressPrefix, OpaqueNLRI]


# ----------------------------------------------------------------------
# Reachability records carried inside MP_REACH_NLRI
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class IPAddrPrefix:
    prefix: bytes
    length: int


@dataclass(frozen=True)
class LabeledIPAddrPrefix:
    prefix: bytes
    length: int
    labels: Tuple[int, ...] = ()


ReachPrefix = Union[IPAddrPrefix, LabeledIPAddrPrefix]


# ----------------------------------------------------------------------
# Path attribute variants
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class NextHopAttribute:
    """Legacy NEXT_HOP attribute (ipv4 unicast)."""

    value: str


@dataclass(frozen=True)
class MpReachNLRIAttribute:
    """MP_REACH_NLRI attribute.

    Attributes
    ----------
    nexthop:
        Packed next-hop address; empty when the attribute carries none.
    value:
        Reachability records in the order they were received.
    family:
        Family announced by the attribute itself.
    """

    nexthop: bytes
    value: Sequence[Any] = ()
    family: Optional[Family] = None


@dataclass(frozen=True)
class OtherAttribute:
    """Any attribute the decoder has no use for (origin, as-path, ...)."""

    name: str
    value: Any = None


PathAttribute = Union[NextHopAttribute, MpReachNLRIAttribute, OtherAttribute]


@dataclass(frozen=True)
class Path:
    """A single best-path event emitted by the BGP engine."""

    family: Optional[Family]
    nlri: Optional[NLRI]
    attributes: Sequence[PathAttribute] = ()
    is_withdraw: bool = False
    source: Optional[str] = None


# ----------------------------------------------------------------------
# Forwarding plane projection
# ----------------------------------------------------------------------
def prefix_mask(length: int, width: int) -> bytes:
    """Return the ``width`` byte network mask for a ``length`` bit prefix.

    Returns an empty mask when ``length`` does not fit the address width.
    """

    bits = 8 * width
    if length < 0 or length > bits:
        return b""
    value = ((1 << length) - 1) << (bits - length)
    return value.to_bytes(width, "big")


@dataclass(frozen=True)
class DestinationPrefix:
    """A destination network identified by its canonical CIDR text."""

    network: IPNetwork

    @classmethod
    def from_packed(cls, address: bytes, length: int) -> "DestinationPrefix":
        mask = prefix_mask(length, len(address))
        if len(address) not in (4, 16) or not mask:
            raise ValueError(
                f"invalid prefix length {length} for {len(address)} byte address"
            )
        masked = bytes(a & m for a, m in zip(address, mask))
        return cls(ipaddress.ip_network((masked, length)))

    @classmethod
    def from_string(cls, value: str) -> "DestinationPrefix":
        return cls(ipaddress.ip_network(value, strict=False))

    @property
    def length(self) -> int:
        return self.network.prefixlen

    @property
    def version(self) -> int:
        return self.network.version

    @property
    def netmask(self) -> IPAddress:
        return self.network.netmask

    @property
    def key(self) -> str:
        return str(self.network)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class RouteEntry:
    """Forwarding-plane route: a prefix and the next hop used to reach it."""

    prefix: DestinationPrefix
    next_hop: Optional[IPAddress] = None

    @property
    def key(self) -> str:
        return self.prefix.key

    def __str__(self) -> str:
        if self.next_hop is None:
            return self.key
        return f"{self.key} via {self.next_hop}"


def route_map(entries: Sequence[RouteEntry]) -> Dict[str, RouteEntry]:
    """Index ``entries`` by prefix key; later duplicates replace earlier ones."""

    return {entry.key: entry for entry in entries}

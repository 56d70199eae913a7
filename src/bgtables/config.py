"""BGP session settings shared by the agent and the ExaBGP renderer.

Sessions are owned by the external BGP speaker; these dataclasses only
describe which peers it should open and what it should forward to us.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .model import IPV4_UNICAST, IPV6_UNICAST, Family

DEFAULT_LOCAL_ASN = 64513
DEFAULT_ROUTER_ID = "255.255.255.255"


@dataclass(frozen=True)
class Peer:
    """BGP peer description.

    Attributes
    ----------
    ip:
        The peer address as a string.
    asn:
        The peer Autonomous System Number.
    description:
        Optional human readable label, propagated to the speaker config.
    families:
        Address families to negotiate with this peer.
    """

    ip: str
    asn: int
    description: Optional[str] = None
    families: Sequence[Family] = (IPV4_UNICAST, IPV6_UNICAST)


@dataclass(frozen=True)
class BGPConfig:
    """Local speaker identity and peer list."""

    local_asn: int = DEFAULT_LOCAL_ASN
    router_id: str = DEFAULT_ROUTER_ID
    peers: Sequence[Peer] = field(default_factory=tuple)

    def peer_for(self, address: str) -> Optional[Peer]:
        """Return the peer matching ``address`` if present."""

        return next((p for p in self.peers if p.ip == address), None)

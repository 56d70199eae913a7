"""Build :class:`~bgtables.model.Path` objects from feed records."""

from __future__ import annotations

import ipaddress
import json
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

from bgtables.model import (
    IPV4_UNICAST,
    Afi,
    Family,
    IPAddrPrefix,
    IPAddressPrefix,
    LabeledIPAddrPrefix,
    MpReachNLRIAttribute,
    NextHopAttribute,
    OpaqueNLRI,
    OtherAttribute,
    Path,
    PathAttribute,
    Safi,
)

OPAQUE_TYPE_URLS = {
    Safi.EVPN: "bgtables/evpn",
    Safi.FLOW_SPEC_UNICAST: "bgtables/flow",
    Safi.MPLS_VPN: "bgtables/mpls-vpn",
}
IP_SAFIS = (Safi.UNICAST, Safi.MULTICAST, Safi.MPLS_LABEL)


def nlri_text(nlri: Any) -> Optional[str]:
    """Return the CIDR text of an ExaBGP NLRI record, if it has one."""

    if isinstance(nlri, str):
        return nlri
    if isinstance(nlri, dict) and isinstance(nlri.get("nlri"), str):
        return nlri["nlri"]
    return None


def _labels(nlri: Any) -> Tuple[int, ...]:
    if not isinstance(nlri, dict):
        return ()
    labels: List[int] = []
    for label in nlri.get("label", []):
        if isinstance(label, (list, tuple)):
            labels.extend(int(value) for value in label[:1])
        else:
            labels.append(int(label))
    return tuple(labels)


def other_attributes(attributes: Optional[Dict[str, Any]]) -> Tuple[PathAttribute, ...]:
    """Wrap the attributes the decoder ignores, dropping the next hop."""

    if not attributes:
        return ()
    return tuple(
        OtherAttribute(name=str(name), value=value)
        for name, value in attributes.items()
        if name != "next-hop"
    )


def build_path(
    family: Family,
    nlri: Any,
    next_hop: Optional[str] = None,
    *,
    withdraw: bool = False,
    source: Optional[str] = None,
    attributes: Iterable[PathAttribute] = (),
) -> Path:
    """Build a path the way the BGP engine hands it over.

    IPv4 unicast announcements carry a NEXT_HOP attribute; every other IP
    family carries its next hop and prefix in MP_REACH_NLRI.  Families whose
    NLRI is not an IP prefix become opaque NLRIs.
    """

    attrs: List[PathAttribute] = list(attributes)
    text = nlri_text(nlri)
    if text is None or family.safi not in IP_SAFIS or family.afi not in (Afi.IP, Afi.IP6):
        type_url = OPAQUE_TYPE_URLS.get(
            family.safi, f"bgtables/{int(family.afi)}-{int(family.safi)}"
        )
        return Path(
            family=family,
            nlri=OpaqueNLRI(type_url=type_url, value=nlri),
            attributes=tuple(attrs),
            is_withdraw=withdraw,
            source=source,
        )

    address, _, length = text.partition("/")
    if length:
        prefix_len = int(length)
    else:
        prefix_len = 32 if ":" not in address else 128
    path_nlri = IPAddressPrefix(prefix=address, prefix_len=prefix_len)

    if next_hop and not withdraw:
        if family == IPV4_UNICAST:
            attrs.append(NextHopAttribute(value=next_hop))
        else:
            packed = ipaddress.ip_address(address).packed
            if family.safi == Safi.MPLS_LABEL:
                record: Any = LabeledIPAddrPrefix(packed, prefix_len, _labels(nlri))
            else:
                record = IPAddrPrefix(packed, prefix_len)
            attrs.append(
                MpReachNLRIAttribute(
                    nexthop=ipaddress.ip_address(next_hop).packed,
                    value=(record,),
                    family=family,
                )
            )

    return Path(
        family=family,
        nlri=path_nlri,
        attributes=tuple(attrs),
        is_withdraw=withdraw,
        source=source,
    )


def path_key(path: Path) -> Hashable:
    """Identity of the destination a path describes, regardless of peer."""

    nlri = path.nlri
    if isinstance(nlri, IPAddressPrefix):
        ident = f"{nlri.prefix}/{nlri.prefix_len}"
    elif isinstance(nlri, OpaqueNLRI):
        ident = json.dumps(nlri.value, sort_keys=True, default=str)
    else:
        ident = repr(nlri)
    return (path.family, ident)

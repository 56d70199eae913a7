"""Next-hop and prefix extraction from BGP path attributes."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .errors import (
    InvalidNLRIType,
    MalformedPath,
    MissingFamily,
    NoNextHopFound,
    NoNextHopInAttribute,
    UnsupportedPrefixType,
)
from .model import (
    IP_ADDRESS_PREFIX_TYPE_URL,
    DestinationPrefix,
    IPAddress,
    IPAddrPrefix,
    IPAddressPrefix,
    LabeledIPAddrPrefix,
    MpReachNLRIAttribute,
    NextHopAttribute,
    Path,
    PathAttribute,
)

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decoded:
    """Result of :func:`decode`: the next hop and the attribute prefixes."""

    next_hop: IPAddress
    prefixes: List[DestinationPrefix] = field(default_factory=list)


def validate(path: Optional[Path]) -> Path:
    """Reject paths that cannot be decoded for the unicast families."""

    if path is None:
        raise MissingFamily("path is nil")
    if path.family is None or not path.family.is_set:
        raise MissingFamily("AFI or SAFI is not set")
    if path.nlri is None:
        raise MalformedPath("path NLRI is nil")
    type_url = getattr(path.nlri, "type_url", None)
    if type_url != IP_ADDRESS_PREFIX_TYPE_URL:
        raise InvalidNLRIType(type_url)
    return path


def decode(path: Path) -> Decoded:
    """Return the next hop and MP_REACH prefixes carried by ``path``.

    Attributes are scanned in order.  A NEXT_HOP attribute wins immediately
    and yields no prefixes (those come from the NLRI field).  An MP_REACH_NLRI
    attribute without a next hop does not end the scan.
    """

    validate(path)
    for attr in path.attributes:
        try:
            result = _from_attribute(attr)
        except NoNextHopInAttribute as exc:
            LOG.debug("skipping attribute: %s", exc)
            continue
        if result is not None:
            return result
    raise NoNextHopFound("no next hop attribute found")


def _from_attribute(attr: PathAttribute) -> Optional[Decoded]:
    if isinstance(attr, NextHopAttribute):
        return Decoded(next_hop=_parse_address(attr.value))
    if isinstance(attr, MpReachNLRIAttribute):
        prefixes = [reach_prefix(record) for record in attr.value]
        if not attr.nexthop:
            raise NoNextHopInAttribute(
                "MP_REACH_NLRI attribute found but no next hop available"
            )
        nexthop = bytes(attr.nexthop)
        if len(nexthop) == 32:
            # global + link-local pair, the global address comes first
            nexthop = nexthop[:16]
        return Decoded(next_hop=_parse_address(nexthop), prefixes=prefixes)
    return None


def _parse_address(value) -> IPAddress:
    try:
        return ipaddress.ip_address(value)
    except ValueError as exc:
        raise MalformedPath(f"invalid next hop {value!r}: {exc}") from exc


def reach_prefix(record) -> DestinationPrefix:
    """Convert an MP_REACH reachability record to a destination prefix."""

    if isinstance(record, (IPAddrPrefix, LabeledIPAddrPrefix)):
        try:
            return DestinationPrefix.from_packed(bytes(record.prefix), record.length)
        except ValueError as exc:
            raise MalformedPath(str(exc)) from exc
    raise UnsupportedPrefixType(record)


def nlri_prefix(path: Path) -> DestinationPrefix:
    """Convert the path's own NLRI to a destination prefix."""

    nlri = path.nlri
    if not isinstance(nlri, IPAddressPrefix):
        raise InvalidNLRIType(getattr(nlri, "type_url", None))
    try:
        address = ipaddress.ip_address(nlri.prefix)
        return DestinationPrefix.from_packed(address.packed, int(nlri.prefix_len))
    except (TypeError, ValueError) as exc:
        raise MalformedPath(
            f"invalid NLRI {nlri.prefix!r}/{nlri.prefix_len}: {exc}"
        ) from exc


def path_prefixes(
    path: Path, extra: Iterable[DestinationPrefix] = ()
) -> List[DestinationPrefix]:
    """Return the NLRI prefix followed by ``extra``, without duplicates."""

    unique = dict.fromkeys([nlri_prefix(path), *extra])
    return list(unique.keys())


def decode_routes(path: Path) -> Tuple[Optional[IPAddress], List[DestinationPrefix]]:
    """Decode ``path`` into a next hop and every prefix it covers.

    Withdrawals only need their prefixes, so no next hop is required and
    ``None`` is returned in its place.
    """

    validate(path)
    if path.is_withdraw:
        return None, path_prefixes(path)
    decoded = decode(path)
    return decoded.next_hop, path_prefixes(path, decoded.prefixes)

import ipaddress

import pytest

from bgtables import decoder
from bgtables.errors import (
    InvalidNLRIType,
    MalformedPath,
    MissingFamily,
    NoNextHopFound,
    UnsupportedPrefixType,
)
from bgtables.model import (
    IPV4_UNICAST,
    IPV6_UNICAST,
    DestinationPrefix,
    Family,
    IPAddrPrefix,
    IPAddressPrefix,
    LabeledIPAddrPrefix,
    MpReachNLRIAttribute,
    NextHopAttribute,
    OpaqueNLRI,
    OtherAttribute,
    Path,
    prefix_mask,
)


def packed(address: str) -> bytes:
    return ipaddress.ip_address(address).packed


def build_path(attributes, prefix="10.0.0.0", length=24, family=IPV4_UNICAST, **kwargs) -> Path:
    return Path(
        family=family,
        nlri=IPAddressPrefix(prefix=prefix, prefix_len=length),
        attributes=tuple(attributes),
        **kwargs,
    )


def test_next_hop_attribute_returns_no_prefixes():
    path = build_path([OtherAttribute("origin", "igp"), NextHopAttribute("192.0.2.1")])

    decoded = decoder.decode(path)

    assert decoded.next_hop == ipaddress.ip_address("192.0.2.1")
    assert decoded.prefixes == []


def test_mp_reach_returns_prefixes_in_order():
    attr = MpReachNLRIAttribute(
        nexthop=packed("2001:db8::1"),
        value=(
            IPAddrPrefix(packed("2001:db8:1::"), 48),
            LabeledIPAddrPrefix(packed("10.1.0.0"), 16, (100,)),
        ),
    )
    path = build_path([attr], prefix="2001:db8:1::", length=48, family=IPV6_UNICAST)

    decoded = decoder.decode(path)

    assert decoded.next_hop == ipaddress.ip_address("2001:db8::1")
    assert [p.key for p in decoded.prefixes] == ["2001:db8:1::/48", "10.1.0.0/16"]


def test_mp_reach_without_next_hop_does_not_stop_the_scan():
    attrs = [
        MpReachNLRIAttribute(nexthop=b"", value=(IPAddrPrefix(packed("10.9.0.0"), 16),)),
        NextHopAttribute("192.0.2.7"),
    ]

    decoded = decoder.decode(build_path(attrs))

    assert decoded.next_hop == ipaddress.ip_address("192.0.2.7")
    assert decoded.prefixes == []


def test_mp_reach_link_local_pair_uses_global_address():
    nexthop = packed("2001:db8::1") + packed("fe80::1")
    attr = MpReachNLRIAttribute(nexthop=nexthop, value=(IPAddrPrefix(packed("2001:db8:2::"), 48),))

    decoded = decoder.decode(build_path([attr], family=IPV6_UNICAST))

    assert decoded.next_hop == ipaddress.ip_address("2001:db8::1")


@pytest.mark.parametrize(
    "attributes",
    [
        [],
        [OtherAttribute("as-path", [65000])],
        [MpReachNLRIAttribute(nexthop=b"", value=())],
    ],
)
def test_no_next_hop_found(attributes):
    with pytest.raises(NoNextHopFound):
        decoder.decode(build_path(attributes))


@pytest.mark.parametrize("family", [None, Family(0, 1), Family(1, 0)])
def test_missing_family(family):
    with pytest.raises(MissingFamily):
        decoder.decode(build_path([NextHopAttribute("192.0.2.1")], family=family))


def test_invalid_nlri_type():
    path = Path(
        family=IPV4_UNICAST,
        nlri=OpaqueNLRI(type_url="bgtables/evpn"),
        attributes=(NextHopAttribute("192.0.2.1"),),
    )

    with pytest.raises(InvalidNLRIType) as excinfo:
        decoder.decode(path)

    assert excinfo.value.type_url == "bgtables/evpn"
    assert isinstance(excinfo.value, MalformedPath)


def test_unsupported_reach_record_aborts_the_path():
    attr = MpReachNLRIAttribute(nexthop=packed("192.0.2.1"), value=("bogus",))

    with pytest.raises(UnsupportedPrefixType):
        decoder.decode(build_path([attr, NextHopAttribute("192.0.2.1")]))


def test_reach_prefix_rejects_out_of_range_length():
    with pytest.raises(MalformedPath):
        decoder.reach_prefix(IPAddrPrefix(packed("10.0.0.0"), 33))


def test_prefix_mask_uses_address_width():
    assert prefix_mask(24, 4) == bytes([255, 255, 255, 0])
    assert prefix_mask(64, 16) == b"\xff" * 8 + b"\x00" * 8
    assert prefix_mask(0, 4) == b"\x00" * 4
    assert prefix_mask(129, 16) == b""


def test_destination_prefix_masks_host_bits():
    v4 = DestinationPrefix.from_packed(packed("10.1.2.3"), 24)
    v6 = DestinationPrefix.from_packed(packed("2001:db8:0:1:2::5"), 64)

    assert v4.key == "10.1.2.0/24"
    assert v4.netmask == ipaddress.ip_address("255.255.255.0")
    assert v4.version == 4
    assert v6.key == "2001:db8:0:1::/64"
    assert v6.netmask == ipaddress.ip_address("ffff:ffff:ffff:ffff::")
    assert v6.version == 6


def test_decode_routes_merges_nlri_and_reach_prefixes():
    attr = MpReachNLRIAttribute(
        nexthop=packed("192.0.2.1"),
        value=(
            IPAddrPrefix(packed("10.0.0.0"), 24),
            IPAddrPrefix(packed("10.0.1.0"), 24),
        ),
    )

    next_hop, prefixes = decoder.decode_routes(build_path([attr]))

    assert next_hop == ipaddress.ip_address("192.0.2.1")
    assert [p.key for p in prefixes] == ["10.0.0.0/24", "10.0.1.0/24"]


def test_decode_routes_withdraw_needs_no_next_hop():
    next_hop, prefixes = decoder.decode_routes(build_path([], is_withdraw=True))

    assert next_hop is None
    assert [p.key for p in prefixes] == ["10.0.0.0/24"]


@pytest.mark.parametrize("prefix,length", [("", 0), ("not-an-ip", 24), ("10.0.0.0", 40)])
def test_nlri_prefix_rejects_malformed_nlri(prefix, length):
    with pytest.raises(MalformedPath):
        decoder.nlri_prefix(build_path([], prefix=prefix, length=length))


def test_nil_nlri_is_rejected():
    path = Path(family=IPV4_UNICAST, nlri=None, attributes=(NextHopAttribute("192.0.2.1"),))

    with pytest.raises(MalformedPath):
        decoder.decode(path)

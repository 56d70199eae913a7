import pytest

from bgtables.model import (
    IPV4_FLOWSPEC,
    IPV4_UNICAST,
    IPV6_UNICAST,
    L2VPN_EVPN,
    Afi,
    DestinationPrefix,
    Family,
    RouteEntry,
    Safi,
    route_map,
)


@pytest.mark.parametrize(
    "family,name",
    [
        (IPV4_UNICAST, "ipv4 unicast"),
        (IPV6_UNICAST, "ipv6 unicast"),
        (L2VPN_EVPN, "l2vpn evpn"),
        (IPV4_FLOWSPEC, "ipv4 flow"),
        (Family(Afi.IP, Safi.MPLS_LABEL), "ipv4 nlri-mpls"),
        (Family(99, 99), "99 99"),
    ],
)
def test_family_names(family, name):
    assert family.name == name
    assert str(family) == name


def test_family_from_name_round_trips_known_families():
    assert Family.from_name("IPv6 Unicast") == IPV6_UNICAST
    assert Family.from_name("l2vpn evpn") == L2VPN_EVPN


@pytest.mark.parametrize("name", ["ipv4", "ipv4 unicast extra", "bogus unicast", "ipv4 bogus"])
def test_family_from_name_rejects_unknown(name):
    with pytest.raises(ValueError):
        Family.from_name(name)


def test_enum_and_int_families_are_interchangeable():
    assert Family(1, 1) == IPV4_UNICAST
    assert hash(Family(1, 1)) == hash(IPV4_UNICAST)
    assert Family(1, 1).is_set
    assert not Family(0, 1).is_set


def test_route_entry_formatting():
    entry = RouteEntry(DestinationPrefix.from_string("10.0.0.1/24"))

    assert entry.key == "10.0.0.0/24"
    assert str(entry) == "10.0.0.0/24"


def test_route_map_keeps_last_duplicate():
    first = RouteEntry(DestinationPrefix.from_string("10.0.0.0/24"))
    second = RouteEntry(DestinationPrefix.from_string("10.0.0.0/24"))
    other = RouteEntry(DestinationPrefix.from_string("2001:db8::/32"))

    mapping = route_map([first, other, second])

    assert list(mapping) == ["10.0.0.0/24", "2001:db8::/32"]
    assert mapping["10.0.0.0/24"] is second

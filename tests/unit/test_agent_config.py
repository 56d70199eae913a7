from pathlib import Path

import pytest

from bgtables.model import IPV4_UNICAST, IPV6_UNICAST, L2VPN_EVPN
from bgtables_agent.config import load_config


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "bgtables.yaml"
    config_path.write_text(
        """
bgp:
  local_asn: 65000
  router_id: 10.255.0.2
  peers:
    - ip: 192.0.2.1
      asn: 65100
      description: upstream-a
    - ip: 2001:db8::1
      asn: 65200
      families: [ipv6 unicast, l2vpn evpn]
route_table:
  backend: iproute
  table: 100
  timeout: 0
sync:
  mode: incremental
  queue_size: 4
feed:
  type: file
  path: /var/lib/bgtables/routes.json
  poll_interval: 2
"""
    )

    cfg = load_config(config_path)

    assert cfg.bgp.local_asn == 65000
    assert cfg.bgp.router_id == "10.255.0.2"
    assert len(cfg.bgp.peers) == 2
    first, second = cfg.bgp.peers
    assert first.ip == "192.0.2.1"
    assert first.asn == 65100
    assert first.description == "upstream-a"
    assert tuple(first.families) == (IPV4_UNICAST, IPV6_UNICAST)
    assert tuple(second.families) == (IPV6_UNICAST, L2VPN_EVPN)
    assert cfg.bgp.peer_for("2001:db8::1") is second
    assert cfg.bgp.peer_for("198.51.100.1") is None

    assert cfg.route_table.backend == "iproute"
    assert cfg.route_table.table == 100
    assert cfg.route_table.protocol == 186
    assert cfg.route_table.timeout is None
    assert cfg.sync.mode == "incremental"
    assert cfg.sync.queue_size == 4
    assert cfg.feed.type == "file"
    assert cfg.feed.path == Path("/var/lib/bgtables/routes.json")
    assert cfg.feed.interval == pytest.approx(2.0)


def test_empty_config_uses_defaults(tmp_path: Path):
    config_path = tmp_path / "bgtables.yaml"
    config_path.write_text("")

    cfg = load_config(config_path)

    assert cfg.bgp.local_asn == 64513
    assert cfg.bgp.router_id == "255.255.255.255"
    assert cfg.bgp.peers == ()
    assert cfg.route_table.backend == "netlink"
    assert cfg.route_table.table == 254
    assert cfg.route_table.timeout == pytest.approx(5.0)
    assert cfg.sync.mode == "full"
    assert cfg.feed.type == "exabgp"
    assert cfg.feed.path is None


@pytest.mark.parametrize(
    "body",
    [
        "- just a list",
        "route_table: {backend: bird}",
        "sync: {mode: eventual}",
        "sync: {queue_size: 0}",
        "feed: {type: gobgp}",
        "feed: {type: file}",
        "bgp: {peers: {ip: 192.0.2.1}}",
        "bgp: {peers: [{ip: 192.0.2.1, asn: 65100, families: [ipv4 bogus]}]}",
        "route_table: [netlink]",
    ],
)
def test_invalid_config_is_rejected(tmp_path: Path, body: str):
    config_path = tmp_path / "bgtables.yaml"
    config_path.write_text(body)

    with pytest.raises(ValueError):
        load_config(config_path)

from threading import Event

import pytest

from bgtables.model import IPV4_UNICAST, IPAddressPrefix, NextHopAttribute, Path
from bgtables.reconciler import RouteReconciler
from bgtables.routetable import MemoryRouteTable
from bgtables_agent.events import TableUpdate
from bgtables_agent.worker import SyncWorker


def build_path(cidr, next_hop="192.0.2.1", withdraw=False):
    prefix, length = cidr.split("/")
    return Path(
        family=IPV4_UNICAST,
        nlri=IPAddressPrefix(prefix=prefix, prefix_len=int(length)),
        attributes=() if withdraw else (NextHopAttribute(next_hop),),
        is_withdraw=withdraw,
    )


def build_worker(table, **kwargs):
    return SyncWorker(RouteReconciler(table), Event(), **kwargs)


def test_full_mode_coalesces_superseded_updates():
    table = MemoryRouteTable()
    worker = build_worker(table, queue_size=1)
    first = [build_path("10.0.0.0/24")]
    second = [build_path("10.0.1.0/24")]

    worker.submit(TableUpdate(changed=first, table=first))
    worker.submit(TableUpdate(changed=second, table=second))

    assert worker.pending == 1
    worker.drain()

    assert worker.pending == 0
    assert table.operations == [("replace", "10.0.1.0/24")]


def test_full_mode_reconciles_against_the_snapshot():
    table = MemoryRouteTable()
    worker = build_worker(table)
    path = build_path("10.0.0.0/24")
    worker.process(TableUpdate(changed=[path], table=[path]))

    withdrawn = build_path("10.0.0.0/24", withdraw=True)
    result = worker.process(TableUpdate(changed=[withdrawn], table=[]))

    assert result.deleted == ["10.0.0.0/24"]
    assert table.list() == []


def test_incremental_mode_applies_changed_paths():
    table = MemoryRouteTable([])
    worker = build_worker(table, mode="incremental")
    worker.submit(TableUpdate(changed=[build_path("10.0.0.0/24"), build_path("10.0.1.0/24")]))
    worker.submit(TableUpdate(changed=[build_path("10.0.0.0/24", withdraw=True)]))

    assert worker.pending == 2
    worker.drain()

    assert table.operations == [
        ("replace", "10.0.0.0/24"),
        ("replace", "10.0.1.0/24"),
        ("delete", "10.0.0.0/24"),
    ]


def test_empty_updates_are_ignored():
    table = MemoryRouteTable()
    worker = build_worker(table)

    worker.submit(TableUpdate(changed=[]))

    assert worker.pending == 0
    assert worker.process(TableUpdate(changed=[])) is None


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        build_worker(MemoryRouteTable(), mode="eventual")

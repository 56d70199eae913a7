"""Entry point for the bgtables agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event, Thread

from bgtables.dispatcher import build_default_dispatcher
from bgtables.reconciler import RouteReconciler
from bgtables.routetable import (
    DeadlineRouteTable,
    IPCommandRouteTable,
    MemoryRouteTable,
    NetlinkRouteTable,
    RouteTable,
)

from .config import FEED_TYPES, AgentConfig, FeedConfig, RouteTableConfig, load_config
from .feeds import ExaBGPFeed, FileTableFeed
from .worker import FULL, SyncWorker

LOG = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("/etc/bgtables/bgtables.yaml")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    # stdout belongs to ExaBGP's process pipe; log to stderr
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def build_route_table(config: RouteTableConfig) -> RouteTable:
    if config.backend == "iproute":
        return IPCommandRouteTable(
            config.table,
            config.protocol,
            binary=config.binary,
            timeout=config.timeout,
        )
    if config.backend == "memory":
        table: RouteTable = MemoryRouteTable()
    else:
        table = NetlinkRouteTable(config.table, config.protocol)
    if config.timeout:
        table = DeadlineRouteTable(table, config.timeout)
    return table


def build_feed(config: FeedConfig, worker: SyncWorker, stop_event: Event) -> Thread:
    if config.type == "exabgp":
        return ExaBGPFeed(worker, sys.stdin, stop_event, snapshot=worker.mode == FULL)
    if config.type == "file":
        if config.path is None:
            raise ValueError("file feed requires 'path'")
        feed = FileTableFeed(worker, config.path, config.interval, stop_event)
        # Perform an initial poll so we react immediately
        try:
            feed.poll()
        except Exception:  # pragma: no cover - logged inside feed
            LOG.exception("initial poll failed for %s", config.path)
        return feed
    raise ValueError(f"unsupported feed type '{config.type}'")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sync BGP best paths into the kernel")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--feed",
        choices=FEED_TYPES,
        help="Override the configured update feed",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.config.exists():
        config = load_config(args.config)
    else:
        LOG.warning("config file %s not found, using defaults", args.config)
        config = AgentConfig()
    if args.feed:
        config.feed.type = args.feed

    table = build_route_table(config.route_table)
    reconciler = RouteReconciler(table, build_default_dispatcher())

    stop_event = Event()
    worker = SyncWorker(
        reconciler,
        stop_event,
        mode=config.sync.mode,
        queue_size=config.sync.queue_size,
    )
    worker.start()

    feed = build_feed(config.feed, worker, stop_event)
    feed.start()
    LOG.info(
        "bgtables agent running (feed=%s, backend=%s, mode=%s)",
        config.feed.type,
        config.route_table.backend,
        config.sync.mode,
    )

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    feed.join(timeout=config.sync.graceful_timeout)
    worker.join(timeout=config.sync.graceful_timeout)
    table.close()

    LOG.info("bgtables agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

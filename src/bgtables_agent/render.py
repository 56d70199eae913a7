"""Render the ExaBGP configuration driving the bgtables agent."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from bgtables.exabgp import ExaBGPConfigRenderer

from .config import load_config
from .main import DEFAULT_CONFIG

LOG = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("/etc/exabgp"),
        help="Directory where exabgp.conf will be written",
    )
    parser.add_argument(
        "--command",
        help="Command ExaBGP runs to start the agent "
        "(defaults to 'bgtables --config <config> --feed exabgp')",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config)
    if not config.bgp.peers:
        LOG.warning("No peers defined in %s", args.config)

    command = args.command or f"bgtables --config {args.config} --feed exabgp"
    renderer = ExaBGPConfigRenderer(config.bgp, args.output_dir, command=command)
    result = renderer.render()
    LOG.info("Rendered ExaBGP config written to %s", result.output_path)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

"""ExaBGP configuration rendering for the bgtables process API."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .config import BGPConfig, Peer

PROCESS_NAME = "bgtables"
DEFAULT_COMMAND = "bgtables --feed exabgp"


@dataclass
class RenderResult:
    """Result of an ExaBGP rendering operation."""

    config_text: str
    output_path: Path


class ExaBGPConfigRenderer:
    """Render an ExaBGP configuration piping received updates into the agent."""

    def __init__(
        self,
        config: BGPConfig,
        output_dir: Path,
        *,
        command: str = DEFAULT_COMMAND,
        filename: str = "exabgp.conf",
    ) -> None:
        self._config = config
        self._output_dir = Path(output_dir)
        self._command = command
        self._filename = filename

    def render_text(self) -> str:
        sections = [self._render_process()]
        sections.extend(self._render_neighbor(peer) for peer in self._config.peers)
        return "\n".join(sections) + "\n"

    def render(self) -> RenderResult:
        body = self.render_text()
        self._output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self._output_dir / self._filename
        output_path.write_text(body)
        return RenderResult(config_text=body, output_path=output_path)

    def _render_process(self) -> str:
        return "\n".join(
            [
                f"process {PROCESS_NAME} {{",
                f"    run {self._command};",
                "    encoder json;",
                "}",
            ]
        )

    def _render_neighbor(self, peer: Peer) -> str:
        lines = [
            f"neighbor {peer.ip} {{",
            f"    router-id {self._config.router_id};",
            f"    local-as {self._config.local_asn};",
            f"    peer-as {peer.asn};",
        ]
        if peer.description:
            lines.append(f'    description "{peer.description}";')
        lines.extend(self._render_families(peer.families))
        lines.extend(
            [
                "    api {",
                f"        processes [ {PROCESS_NAME} ];",
                "        neighbor-changes;",
                "        receive {",
                "            parsed;",
                "            update;",
                "        }",
                "    }",
                "}",
            ]
        )
        return "\n".join(lines)

    def _render_families(self, families: Sequence) -> Iterable[str]:
        if not families:
            return []
        lines = ["    family {"]
        lines.extend(f"        {family.name};" for family in families)
        lines.append("    }")
        return lines

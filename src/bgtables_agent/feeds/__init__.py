"""Best-path feeds used by the bgtables agent."""

from .exabgp import ExaBGPFeed  # noqa: F401
from .file import FileTableFeed  # noqa: F401
from .table import BestPathTable  # noqa: F401

__all__ = ["BestPathTable", "ExaBGPFeed", "FileTableFeed"]

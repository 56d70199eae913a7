"""Exception hierarchy for path decoding and route synchronisation."""

from __future__ import annotations

from typing import Optional


class BGTablesError(Exception):
    """Base class for every error raised by the core."""


class MalformedPath(BGTablesError):
    """The path cannot be decoded (null path, missing family, bad NLRI)."""


class MissingFamily(MalformedPath):
    pass


class InvalidNLRIType(MalformedPath):
    def __init__(self, type_url: Optional[str]) -> None:
        super().__init__(f"invalid NLRI type URL: {type_url}")
        self.type_url = type_url


class UnsupportedPrefixType(MalformedPath):
    def __init__(self, record: object) -> None:
        super().__init__(f"unsupported NLRI type: {type(record).__name__}")
        self.record = record


class UnsupportedAddressFamily(BGTablesError):
    """No handler is registered for the (AFI, SAFI) pair."""

    def __init__(self, afi: int, safi: int) -> None:
        super().__init__(f"unsupported AFI/SAFI: {int(afi)}/{int(safi)}")
        self.afi = afi
        self.safi = safi


class NextHopResolutionFailure(BGTablesError):
    """No usable next hop could be extracted from the path attributes."""


class NoNextHopInAttribute(NextHopResolutionFailure):
    pass


class NoNextHopFound(NextHopResolutionFailure):
    pass


class ForwardingPlaneFailure(BGTablesError):
    """The route table backend rejected an operation."""

    def __init__(self, operation: str, entry: object, reason: object = None) -> None:
        message = f"{operation} {entry} failed"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.operation = operation
        self.entry = entry
        self.reason = reason

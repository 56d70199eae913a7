"""Kernel route synchronisation for BGP best paths.

The package turns best-path events emitted by an external BGP speaker into
forwarding-plane state.  It is split into small, independently testable
pieces:

* :mod:`bgtables.decoder` extracts the next hop and destination prefixes from
  a path, understanding both the legacy NEXT_HOP attribute and MP_REACH_NLRI;
* :mod:`bgtables.dispatcher` picks a handler per (AFI, SAFI) pair;
* :mod:`bgtables.reconciler` converges a :class:`~bgtables.routetable.RouteTable`
  on the desired route set, either by full diff or path by path; and
* :mod:`bgtables.routetable` provides the netlink, ``ip`` command and
  in-memory backends.

Nothing here talks BGP; sessions, attribute validation and best-path
selection belong to the speaker (ExaBGP in the bundled agent).
"""

from .dispatcher import FamilyDispatcher, build_default_dispatcher  # noqa: F401
from .reconciler import ReconcileResult, RouteReconciler  # noqa: F401

__all__ = [
    "FamilyDispatcher",
    "ReconcileResult",
    "RouteReconciler",
    "build_default_dispatcher",
]

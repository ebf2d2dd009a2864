"""
Mixing Network Graph Store
==========================

Containers (well-mixed tanks) connected by directed flow edges (pipes).

LINKING MODEL
=============

Edges refer to containers by NAME only. An edge may exist before its
source container (queued edges), and its destination may never resolve to
a container at all (an "out" sink). Both cases are legal:

- Unresolved source: the edge is inert, it carries nothing.
- Unresolved destination: the edge drains its source with no back-pressure.

Each container and edge also carries a stable integer handle assigned by
the store. The adjacency index (incidence matrices used by the step
engine) is rebuilt lazily after structural mutations, never per tick.

INCIDENCE MATRICES
==================

For n containers and m edges:

    A_in[i, j]  = 1 if edge j flows INTO container i
    A_out[i, j] = 1 if edge j flows OUT OF container i

so that, for the edge rate vector q:

    in_rate  = A_in  @ q
    out_rate = A_out @ q

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """
    A mixing tank holding a liquid volume and a solute concentration.

    Configuration fields are fixed at creation; the ``curr_*`` fields are
    the live state advanced by the step engine.
    """

    name: str
    max_out_rate: float
    max_capacity: float
    lethal_concentration: float
    curr_liquid_level: float
    curr_concentration: float
    handle: int = -1
    curr_in_rate: float = 0.0
    curr_out_rate: float = field(init=False)

    def __post_init__(self):
        self.curr_out_rate = self.derived_out_rate()

    def derived_out_rate(self) -> float:
        """A container cannot output faster than it is full, nor above its rating."""
        return min(self.curr_liquid_level, self.max_out_rate)

    @property
    def substance_amount(self) -> float:
        """Current solute amount (concentration x level)."""
        return self.curr_concentration * self.curr_liquid_level


@dataclass
class FlowEdge:
    """
    Directed pipe carrying a fixed fraction of its source's output.

    Attributes:
        source: Name of the container feeding this edge
        destination: Name of the receiving container (may be dangling)
        percent_out_rate: Fraction [0, 1] of the source's output rate
        curr_rate: Flow carried during the last edge pass
        curr_concentration: Concentration carried during the last edge pass
    """

    source: str
    destination: str
    percent_out_rate: float
    handle: int = -1
    curr_rate: float = 0.0
    curr_concentration: float = 0.0


@dataclass(frozen=True)
class NetworkIndex:
    """
    Snapshot of the network structure as numpy arrays.

    Row order follows ``GraphStore.containers``; column order follows
    ``GraphStore.edges``. Index -1 marks an unresolved name.
    """

    version: int
    inflow: np.ndarray  # (n_containers, n_edges)
    outflow: np.ndarray  # (n_containers, n_edges)
    source_index: np.ndarray  # (n_edges,) int
    destination_index: np.ndarray  # (n_edges,) int

    @property
    def in_degree(self) -> np.ndarray:
        return self.inflow.sum(axis=1)

    @property
    def resolved_sources(self) -> np.ndarray:
        """Boolean mask of edges whose source container exists."""
        return self.source_index >= 0


class GraphStore:
    """
    Owner of all containers and flow edges of one simulation.

    The store is the single source of truth passed to the step engine, the
    validation gate and the scenario loader. It holds no simulation logic.
    """

    def __init__(self):
        self._containers: Dict[int, Container] = {}
        self._by_name: Dict[str, int] = {}
        self._edges: Dict[int, FlowEdge] = {}
        self._handles = itertools.count()
        self._version = 0
        self._index: Optional[NetworkIndex] = None
        self._inbound: Dict[str, List[FlowEdge]] = {}
        self._outbound: Dict[str, List[FlowEdge]] = {}

    # ------------------------------------------------------------------
    # Structural mutation
    # ------------------------------------------------------------------

    def add_container(
        self,
        name: str,
        max_out_rate: float,
        start_level: float,
        max_capacity: float,
        start_concentration: float,
        lethal_concentration: float,
    ) -> Container:
        """
        Create a container and append it to the store.

        Edges already queued with ``source == name`` bind to it by name.

        Raises:
            ValueError: If a container with this name already exists
        """
        if name in self._by_name:
            raise ValueError(f"Container '{name}' already exists")

        container = Container(
            name=name,
            max_out_rate=float(max_out_rate),
            max_capacity=float(max_capacity),
            lethal_concentration=float(lethal_concentration),
            curr_liquid_level=float(start_level),
            curr_concentration=float(start_concentration),
            handle=next(self._handles),
        )
        self._containers[container.handle] = container
        self._by_name[name] = container.handle
        self._invalidate()

        logger.debug(
            f"Container '{name}' added (handle={container.handle}, "
            f"{len(self.outbound_edges(name))} outbound, "
            f"{len(self.inbound_edges(name))} inbound)"
        )
        return container

    def add_edge(self, source: str, destination: str, percent: float) -> FlowEdge:
        """Create a flow edge. Neither endpoint needs to exist yet."""
        edge = FlowEdge(
            source=source,
            destination=destination,
            percent_out_rate=float(percent),
            handle=next(self._handles),
        )
        self._edges[edge.handle] = edge
        self._invalidate()
        logger.debug(f"Edge {source} -> {destination} ({percent:.0%}) added")
        return edge

    def remove_container(self, name: str) -> bool:
        """
        Remove a container and every edge whose source is that container.

        Edges pointing INTO the container are kept; they become dangling.

        Returns:
            True if a container was removed, False if the name was unknown
        """
        handle = self._by_name.pop(name, None)
        if handle is None:
            return False

        del self._containers[handle]
        removed = [h for h, e in self._edges.items() if e.source == name]
        for h in removed:
            del self._edges[h]
        self._invalidate()

        logger.debug(f"Container '{name}' removed with {len(removed)} outbound edges")
        return True

    def remove_edge(self, handle: int) -> bool:
        """Remove a single edge by handle."""
        if self._edges.pop(handle, None) is None:
            return False
        self._invalidate()
        return True

    def clear(self) -> None:
        """Remove everything. Handles are never reused."""
        self._containers.clear()
        self._by_name.clear()
        self._edges.clear()
        self._invalidate()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def containers(self) -> Tuple[Container, ...]:
        """Containers in creation order."""
        return tuple(self._containers.values())

    @property
    def edges(self) -> Tuple[FlowEdge, ...]:
        """Edges in creation order."""
        return tuple(self._edges.values())

    @property
    def version(self) -> int:
        """Counter bumped on every structural mutation."""
        return self._version

    def container_names(self) -> List[str]:
        return list(self._by_name)

    def find_container(self, name: str) -> Optional[Container]:
        """Look up a container by name. ``None`` is a normal outcome."""
        handle = self._by_name.get(name)
        if handle is None:
            return None
        return self._containers[handle]

    def get_container(self, handle: int) -> Optional[Container]:
        return self._containers.get(handle)

    def inbound_edges(self, name: str) -> List[FlowEdge]:
        """Edges whose destination is ``name``."""
        self._ensure_adjacency()
        return list(self._inbound.get(name, ()))

    def outbound_edges(self, name: str) -> List[FlowEdge]:
        """Edges whose source is ``name``."""
        self._ensure_adjacency()
        return list(self._outbound.get(name, ()))

    def outbound_percent_sum(self, name: str) -> float:
        return sum(e.percent_out_rate for e in self.outbound_edges(name))

    def __len__(self) -> int:
        return len(self._containers)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    # ------------------------------------------------------------------
    # Adjacency index
    # ------------------------------------------------------------------

    def index(self) -> NetworkIndex:
        """
        Incidence matrices for the current structure.

        Cached until the next structural mutation.
        """
        if self._index is not None and self._index.version == self._version:
            return self._index

        containers = self.containers
        edges = self.edges
        n, m = len(containers), len(edges)
        row = {c.name: i for i, c in enumerate(containers)}

        source_index = np.array([row.get(e.source, -1) for e in edges], dtype=int)
        destination_index = np.array(
            [row.get(e.destination, -1) for e in edges], dtype=int
        )

        inflow = np.zeros((n, m))
        outflow = np.zeros((n, m))
        columns = np.arange(m)

        has_dest = destination_index >= 0
        inflow[destination_index[has_dest], columns[has_dest]] = 1.0

        has_source = source_index >= 0
        outflow[source_index[has_source], columns[has_source]] = 1.0

        self._index = NetworkIndex(
            version=self._version,
            inflow=inflow,
            outflow=outflow,
            source_index=source_index,
            destination_index=destination_index,
        )
        logger.debug(f"Network index rebuilt: {n} containers, {m} edges")
        return self._index

    def _invalidate(self):
        self._version += 1
        self._index = None
        self._inbound = {}
        self._outbound = {}

    def _ensure_adjacency(self):
        if self._inbound or self._outbound or not self._edges:
            return
        for edge in self._edges.values():
            self._inbound.setdefault(edge.destination, []).append(edge)
            self._outbound.setdefault(edge.source, []).append(edge)


def validate_network():
    """Validate graph store linking semantics."""
    store = GraphStore()

    # Test 1: Edges queued before their source bind by name
    store.add_edge("feed", "tank", 1.0)
    store.add_container("feed", 0.5, 500, 500, 1.0, 1.0)
    assert len(store.outbound_edges("feed")) == 1, "Queued edge did not bind"

    # Test 2: Dangling destination is legal
    assert store.find_container("tank") is None, "Unexpected container"
    assert len(store.inbound_edges("tank")) == 1, "Dangling edge lost"

    # Test 3: Incidence matrices
    store.add_container("tank", 0.1, 300, 800, 0.0, 0.9)
    idx = store.index()
    assert idx.inflow.shape == (2, 1), "Incidence shape"
    assert idx.inflow[1, 0] == 1.0 and idx.outflow[0, 0] == 1.0, "Incidence values"

    # Test 4: Cascade removal keeps inbound edges
    store.add_edge("tank", "out", 1.0)
    store.remove_container("tank")
    assert len(store.edges) == 1, "Only the removed container's outbound edge goes"
    assert store.edges[0].destination == "tank", "Inbound edge should remain"

    print("✓ All network validations passed")

"""
Scenario Loader and Baseline Reset
==================================

Seeds a network from a fixed topology and restores it to its starting
state without rebuilding the structure.

Baselines are keyed by container handle, so removing or re-adding
containers can never shift one container's starting values onto another.

DEMO TOPOLOGY
=============

Oral drug dose moving through a simplified body:

    drugsIn -> stomach -> small intestine -+-> large intestine -+-> bloodstream
                                           |                    +-> out
                                           +-> bloodstream
    bloodstream -> liver (25%) -> bloodstream / out
    bloodstream -> brain (25%) -> bloodstream

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .network import Container, GraphStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerSpec:
    """Starting values of one container (also its reset baseline)."""

    name: str
    max_out_rate: float
    start_level: float
    max_capacity: float
    start_concentration: float
    lethal_concentration: float


@dataclass(frozen=True)
class EdgeSpec:
    source: str
    destination: str
    percent: float


@dataclass
class Topology:
    """Ordered container and edge specifications of a scenario."""

    containers: List[ContainerSpec] = field(default_factory=list)
    edges: List[EdgeSpec] = field(default_factory=list)

    def validate(self) -> None:
        """Validate structural consistency."""
        names = [c.name for c in self.containers]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate container names: {sorted(duplicates)}")

        for edge in self.edges:
            if not 0.0 <= edge.percent <= 1.0:
                raise ValueError(
                    f"Edge {edge.source} -> {edge.destination}: percent "
                    f"{edge.percent} outside [0, 1]"
                )


class ScenarioLoader:
    """
    Loads topologies into a graph store and keeps their reset baselines.
    """

    def __init__(self, store: GraphStore):
        self.store = store
        self._baselines: Dict[int, ContainerSpec] = {}

    @property
    def baselines(self) -> Tuple[ContainerSpec, ...]:
        """Baselines in container creation order."""
        return tuple(self._baselines.values())

    def baseline_for(self, handle: int) -> ContainerSpec:
        return self._baselines[handle]

    def load_scenario(self, topology: Topology) -> None:
        """
        Replace the network with ``topology``.

        Edges are created first (queued), then containers bind to them by
        name. Edge rates are primed from the new containers' output rates.
        """
        topology.validate()
        self.clear()

        for edge in topology.edges:
            self.store.add_edge(edge.source, edge.destination, edge.percent)

        for spec in topology.containers:
            container = self.store.add_container(
                spec.name,
                spec.max_out_rate,
                spec.start_level,
                spec.max_capacity,
                spec.start_concentration,
                spec.lethal_concentration,
            )
            self._baselines[container.handle] = spec

        self.prime_edges()

        logger.info(
            f"Scenario loaded: {len(topology.containers)} containers, "
            f"{len(topology.edges)} edges"
        )

    def capture_baseline(self, container: Container) -> ContainerSpec:
        """Record the current state of ``container`` as its baseline."""
        spec = ContainerSpec(
            name=container.name,
            max_out_rate=container.max_out_rate,
            start_level=container.curr_liquid_level,
            max_capacity=container.max_capacity,
            start_concentration=container.curr_concentration,
            lethal_concentration=container.lethal_concentration,
        )
        self._baselines[container.handle] = spec
        return spec

    def forget(self, handle: int) -> None:
        self._baselines.pop(handle, None)

    def reset(self) -> None:
        """
        Restore every container to its baseline, then re-prime the edges.

        Calling reset twice leaves the same state as calling it once.
        """
        for container in self.store.containers:
            spec = self._baselines.get(container.handle)
            if spec is None:
                logger.warning(f"No baseline for '{container.name}', left as is")
                continue
            container.curr_liquid_level = float(spec.start_level)
            container.curr_concentration = float(spec.start_concentration)
            container.curr_in_rate = 0.0
            container.curr_out_rate = container.derived_out_rate()

        for edge in self.store.edges:
            edge.curr_concentration = 0.0
        self.prime_edges()

    def prime_edges(self) -> None:
        """Set every resolvable edge's rate from its source's output rate."""
        for edge in self.store.edges:
            source = self.store.find_container(edge.source)
            if source is None:
                continue
            edge.curr_rate = source.curr_out_rate * edge.percent_out_rate

    def clear(self) -> None:
        """Drop all containers, edges and baselines."""
        self.store.clear()
        self._baselines.clear()


def demo_topology() -> Topology:
    """The eight-container drug absorption demo."""
    return Topology(
        edges=[
            EdgeSpec("drugsIn", "stomach", 1.0),
            EdgeSpec("stomach", "small intestine", 1.0),
            EdgeSpec("small intestine", "large intestine", 0.5),
            EdgeSpec("small intestine", "bloodstream", 0.5),
            EdgeSpec("large intestine", "bloodstream", 0.5),
            EdgeSpec("large intestine", "out", 0.5),
            EdgeSpec("bloodstream", "liver", 0.25),
            EdgeSpec("liver", "bloodstream", 0.5),
            EdgeSpec("liver", "out", 0.5),
            EdgeSpec("bloodstream", "brain", 0.25),
            EdgeSpec("brain", "bloodstream", 1.0),
        ],
        containers=[
            ContainerSpec("drugsIn", 0.5, 500, 500, 1.0, 1.0),
            ContainerSpec("stomach", 0.1, 300, 800, 0.0, 0.9),
            ContainerSpec("small intestine", 0.1, 300, 500, 0.0, 0.4),
            ContainerSpec("large intestine", 0.1, 300, 500, 0.0, 0.5),
            ContainerSpec("bloodstream", 0.2, 300, 2000, 0.0, 0.015),
            ContainerSpec("out", 0.1, 0, 4000, 0.0, 0.5),
            ContainerSpec("liver", 0.1, 300, 500, 0.0, 0.007),
            ContainerSpec("brain", 0.1, 300, 500, 0.0, 0.5),
        ],
    )


def pair_topology() -> Topology:
    """Minimal two-container scenario: a full feed tank draining into an empty one."""
    return Topology(
        edges=[EdgeSpec("A", "B", 1.0)],
        containers=[
            ContainerSpec("A", 0.5, 500, 500, 1.0, 1.0),
            ContainerSpec("B", 0.1, 300, 800, 0.0, 0.9),
        ],
    )


def validate_scenario():
    """Validate loading and reset."""
    store = GraphStore()
    loader = ScenarioLoader(store)

    # Test 1: Demo loads completely
    loader.load_scenario(demo_topology())
    assert len(store) == 8, "Demo should have 8 containers"
    assert len(store.edges) == 11, "Demo should have 11 edges"

    # Test 2: Edge rates primed from sources
    feed_edge = store.outbound_edges("drugsIn")[0]
    assert feed_edge.curr_rate == 0.5, "Edge not primed"

    # Test 3: Reset restores baseline
    store.find_container("stomach").curr_liquid_level = 1.0
    loader.reset()
    assert store.find_container("stomach").curr_liquid_level == 300, "Reset failed"

    print("✓ All scenario validations passed")

"""
Simulation Session
==================

The single object an input form, a view and a run loop talk to.

A session owns one graph store and wires the step engine, the validation
gate and the scenario loader to it. Every public operation takes the
session lock, so ticks and structural edits never interleave even when
the run loop steps from a background thread.

Creating a container follows the form workflow:

1. Queue outbound edges (destination + percent) with ``queue_edge``.
2. Call ``add_container``: the gate checks the values and the queued
   percentage sum; on success the queued edges and the container are
   committed, and the network is reset to its baselines.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .config import SimulationConfig
from .core import (
    GraphStore,
    RejectionReason,
    ScenarioLoader,
    StepEngine,
    TickResult,
    Topology,
    ValidationResult,
    validate_container,
)

logger = logging.getLogger(__name__)

TickHook = Callable[[TickResult], None]


@dataclass(frozen=True)
class OperationResult:
    """Result surfaced to the input layer."""

    ok: bool
    message: str = ""
    reason: Optional[RejectionReason] = None


@dataclass(frozen=True)
class QueuedEdge:
    destination: str
    percent: float

    def label(self) -> str:
        return f"{self.percent * 100:g}% output to {self.destination}"


@dataclass(frozen=True)
class ContainerView:
    """Read-only snapshot of one container."""

    name: str
    liquid_level: float
    max_capacity: float
    concentration: float
    lethal_concentration: float
    in_rate: float
    out_rate: float
    max_out_rate: float


@dataclass(frozen=True)
class EdgeView:
    """Read-only snapshot of one flow edge."""

    source: str
    destination: str
    percent: float
    rate: float
    concentration: float
    dangling: bool


class SimulationSession:
    """Thread-safe facade over one mixing network."""

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()
        self.store = GraphStore()
        self.engine = StepEngine(self.store, self.config)
        self.loader = ScenarioLoader(self.store)

        self._edge_queue: List[QueuedEdge] = []
        self._hooks: List[TickHook] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Edge queue
    # ------------------------------------------------------------------

    def queue_edge(self, destination: str, percent: float) -> OperationResult:
        """Queue an outbound edge for the next container to be added."""
        with self._lock:
            self._edge_queue.append(QueuedEdge(destination, float(percent)))
            return OperationResult(ok=True)

    def dequeue_edge(self, position: int) -> OperationResult:
        """Drop a queued edge by its position in the queue."""
        with self._lock:
            if not 0 <= position < len(self._edge_queue):
                return OperationResult(ok=False, message="no queued edge at that position")
            del self._edge_queue[position]
            return OperationResult(ok=True)

    @property
    def queued_edges(self) -> List[QueuedEdge]:
        with self._lock:
            return list(self._edge_queue)

    def pending_percent_sum(self) -> float:
        with self._lock:
            return sum(e.percent for e in self._edge_queue)

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def add_container(
        self,
        name: str,
        max_out_rate: float,
        start_level: float,
        max_capacity: float,
        start_concentration: float,
        lethal_concentration: float,
    ) -> OperationResult:
        """
        Validate and commit a container together with the queued edges.

        On rejection nothing changes, the edge queue included.
        """
        with self._lock:
            result = validate_container(
                name,
                max_out_rate,
                start_level,
                max_capacity,
                start_concentration,
                lethal_concentration,
                # Edges added directly before their source exists count too
                self.pending_percent_sum() + self.store.outbound_percent_sum(name),
            )
            if result.ok and name in self.store:
                result = ValidationResult.rejected(RejectionReason.DUPLICATE_NAME)

            if not result.ok:
                logger.warning(f"Container '{name}' rejected: {result.message}")
                return OperationResult(
                    ok=False, message=result.message, reason=result.reason
                )

            for queued in self._edge_queue:
                self.store.add_edge(name, queued.destination, queued.percent)
            self._edge_queue.clear()

            container = self.store.add_container(
                name,
                max_out_rate,
                start_level,
                max_capacity,
                start_concentration,
                lethal_concentration,
            )
            self.loader.capture_baseline(container)
            self.loader.reset()
            self.engine.reset_clock()

            logger.info(f"Container '{name}' added")
            return OperationResult(ok=True)

    def add_edge(self, source: str, destination: str, percent: float) -> OperationResult:
        """Add an edge directly; its source may not exist yet."""
        with self._lock:
            self.store.add_edge(source, destination, percent)
            return OperationResult(ok=True)

    def remove_container(self, name: str) -> OperationResult:
        """Remove a container with its outbound edges, then reset the network."""
        with self._lock:
            container = self.store.find_container(name)
            if container is None:
                return OperationResult(ok=False, message=f"no container named '{name}'")

            self.store.remove_container(name)
            self.loader.forget(container.handle)
            self.loader.reset()
            self.engine.reset_clock()

            logger.info(f"Container '{name}' removed")
            return OperationResult(ok=True)

    def reset(self) -> OperationResult:
        with self._lock:
            self.loader.reset()
            self.engine.reset_clock()
            return OperationResult(ok=True)

    def clear(self) -> OperationResult:
        with self._lock:
            self.loader.clear()
            self._edge_queue.clear()
            self.engine.reset_clock()
            logger.info("Network cleared")
            return OperationResult(ok=True)

    def load_scenario(self, topology: Topology) -> OperationResult:
        with self._lock:
            try:
                self.loader.load_scenario(topology)
            except ValueError as e:
                logger.warning(f"Scenario rejected: {e}")
                return OperationResult(ok=False, message=str(e))
            self._edge_queue.clear()
            self.engine.reset_clock()
            return OperationResult(ok=True)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step_once(self) -> TickResult:
        """Advance one tick and notify the tick hooks."""
        with self._lock:
            result = self.engine.step()
            hooks = list(self._hooks)

        for hook in hooks:
            hook(result)
        return result

    def on_tick_completed(self, hook: TickHook) -> None:
        """Register a callback run after every tick (e.g. to mark a view stale)."""
        with self._lock:
            self._hooks.append(hook)

    def remove_tick_hook(self, hook: TickHook) -> None:
        with self._lock:
            if hook in self._hooks:
                self._hooks.remove(hook)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def container_views(self) -> Dict[str, ContainerView]:
        """Current container state keyed by name, in creation order."""
        with self._lock:
            return {
                c.name: ContainerView(
                    name=c.name,
                    liquid_level=c.curr_liquid_level,
                    max_capacity=c.max_capacity,
                    concentration=c.curr_concentration,
                    lethal_concentration=c.lethal_concentration,
                    in_rate=c.curr_in_rate,
                    out_rate=c.curr_out_rate,
                    max_out_rate=c.max_out_rate,
                )
                for c in self.store.containers
            }

    def edge_views(self) -> List[EdgeView]:
        with self._lock:
            return [
                EdgeView(
                    source=e.source,
                    destination=e.destination,
                    percent=e.percent_out_rate,
                    rate=e.curr_rate,
                    concentration=e.curr_concentration,
                    dangling=e.destination not in self.store,
                )
                for e in self.store.edges
            ]

    def outbound_views(self, name: str) -> List[EdgeView]:
        """Edges leaving ``name``, keyed for display next to that container."""
        return [v for v in self.edge_views() if v.source == name]

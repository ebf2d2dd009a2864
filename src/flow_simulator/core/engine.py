"""
Simulation Step Engine
======================

Advances every container and flow edge of a network by one fixed tick.

MATHEMATICAL FOUNDATION
=======================

For each container with inbound edges, the solute amount S obeys the
linear first-order ODE

    dS/dt = c_in - q_out * S

with
    c_in  = k * Σ_inbound (q_e * C_e)      (k = concentration scale, 100)
    q_out = Σ_outbound q_e

Holding c_in and q_out constant over one tick of length Δt, the exact
solution is

    S(t + Δt) = Y + (S(t) - Y) * exp(-q_out * Δt),     Y = c_in / q_out

Y is the steady-state amount the container is driven toward. A container
without inbound edges is a pure accumulator: its solute amount is set to
its new liquid level.

Zero outflow makes Y infinite or NaN. This is NOT guarded: the resulting
NaN concentration is part of the observable behaviour and is rendered as
"N/A" by the display layer.

TWO-PHASE TICK
==============

1. Container pass: every container reads edge rates from the PREVIOUS tick.
2. Edge pass: every edge reads its source's rates from the CURRENT tick.

No container sees an edge value written during the same tick. Swapping the
phases changes the trajectory.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from scipy.integrate import solve_ivp

from ..config import SimulationConfig
from .network import GraphStore

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """
    Outcome of one tick.

    ``terminal`` is an end-of-simulation signal for the run loop, not an
    error.
    """

    tick: int
    time: float
    terminal: bool = False
    over_limit: List[str] = field(default_factory=list)


def closed_form_substance(
    substance: np.ndarray,
    concentration_rate_in: np.ndarray,
    out_rate: np.ndarray,
    dt: float,
) -> np.ndarray:
    """
    Exact one-tick solution of dS/dt = c_in - q_out * S.

    Division by zero yields inf/NaN instead of raising.

    Args:
        substance: Current solute amount S
        concentration_rate_in: Solute inflow c_in
        out_rate: Total outflow q_out
        dt: Tick length

    Returns:
        Solute amount after one tick
    """
    substance = np.asarray(substance, dtype=float)
    concentration_rate_in = np.asarray(concentration_rate_in, dtype=float)
    out_rate = np.asarray(out_rate, dtype=float)

    with np.errstate(divide="ignore", invalid="ignore"):
        steady_state = concentration_rate_in / out_rate
        return steady_state + (substance - steady_state) * np.exp(-out_rate * dt)


class StepEngine:
    """
    Fixed-tick integrator for a mixing network.

    The engine keeps no copy of the network: it gathers the live state
    from the store, updates it with array arithmetic and writes it back.
    """

    def __init__(self, store: GraphStore, config: Optional[SimulationConfig] = None):
        self.store = store
        self.config = config or SimulationConfig()
        self.config.validate()

        self.tick_count = 0
        self.time = 0.0
        self._nan_reported = set()

    def reset_clock(self) -> None:
        """Restart tick counting (the network state is untouched)."""
        self.tick_count = 0
        self.time = 0.0
        self._nan_reported.clear()

    def step(self) -> TickResult:
        """
        Advance the whole network by one tick.

        Returns:
            TickResult with the terminal flag raised if any container ended
            the tick above the terminal concentration
        """
        containers = self.store.containers
        edges = self.store.edges
        index = self.store.index()
        dt = self.config.tick_duration

        # Previous-tick edge state
        q = np.array([e.curr_rate for e in edges], dtype=float)
        c_edge = np.array([e.curr_concentration for e in edges], dtype=float)

        # --- CONTAINER PASS ---
        level = np.array([c.curr_liquid_level for c in containers], dtype=float)
        concentration = np.array(
            [c.curr_concentration for c in containers], dtype=float
        )
        max_out = np.array([c.max_out_rate for c in containers], dtype=float)

        in_rate = index.inflow @ q
        out_rate = index.outflow @ q
        concentration_rate_in = (
            index.inflow @ (q * c_edge) * self.config.concentration_scale
        )

        substance = closed_form_substance(
            concentration * level, concentration_rate_in, out_rate, dt
        )

        level = level + in_rate - out_rate

        # Pure accumulators: no inflow to mix
        substance = np.where(index.in_degree == 0, level, substance)

        with np.errstate(divide="ignore", invalid="ignore"):
            concentration = np.where(level == 0, 0.0, substance / level)

        out = np.minimum(level, max_out)

        for i, container in enumerate(containers):
            container.curr_in_rate = float(in_rate[i])
            container.curr_liquid_level = float(level[i])
            container.curr_concentration = float(concentration[i])
            container.curr_out_rate = float(out[i])

        # --- EDGE PASS ---
        resolved = index.resolved_sources
        for j, edge in enumerate(edges):
            if not resolved[j]:
                continue
            src = index.source_index[j]
            edge.curr_rate = edge.percent_out_rate * float(out[src])
            edge.curr_concentration = float(concentration[src])

        self.tick_count += 1
        self.time += dt

        over_limit = [
            c.name
            for c, value in zip(containers, concentration)
            if value > self.config.terminal_concentration
        ]
        self._report_degenerate(containers, concentration)

        if over_limit:
            logger.info(
                f"Tick {self.tick_count}: concentration above "
                f"{self.config.terminal_concentration} in {', '.join(over_limit)}"
            )

        return TickResult(
            tick=self.tick_count,
            time=self.time,
            terminal=bool(over_limit),
            over_limit=over_limit,
        )

    def run(self, n_ticks: int, stop_on_terminal: bool = True) -> List[TickResult]:
        """
        Step up to ``n_ticks`` times.

        Args:
            n_ticks: Maximum number of ticks
            stop_on_terminal: Stop after the first terminal tick

        Returns:
            Results of the ticks actually run
        """
        if n_ticks < 0:
            raise ValueError(f"Tick count cannot be negative: {n_ticks}")

        results = []
        for _ in range(n_ticks):
            result = self.step()
            results.append(result)
            if stop_on_terminal and result.terminal:
                break
        return results

    def _report_degenerate(self, containers, concentration):
        """Log each container once when its concentration first becomes NaN."""
        for container, value in zip(containers, concentration):
            if np.isnan(value) and container.handle not in self._nan_reported:
                self._nan_reported.add(container.handle)
                logger.warning(
                    f"Concentration of '{container.name}' is undefined "
                    f"(zero outflow with inflow)"
                )


def integrate_substance(
    substance: float, concentration_rate_in: float, out_rate: float, dt: float
) -> Tuple[float, bool]:
    """
    Integrate dS/dt = c_in - q_out * S numerically over one tick.

    Reference solution for checking the closed form.

    Returns:
        (S after dt, solver success flag)
    """
    solution = solve_ivp(
        lambda t, s: concentration_rate_in - out_rate * s,
        (0.0, dt),
        [substance],
        method="RK45",
        rtol=1e-10,
        atol=1e-12,
    )
    if not solution.success:
        logger.warning(f"ODE solver failed: {solution.message}")
    return float(solution.y[0, -1]), bool(solution.success)


def validate_step_engine():
    """Comprehensive validation of the step engine."""
    dt = SimulationConfig().tick_duration

    # Test 1: Closed form matches numerical integration
    for s0, c_in, q_out in [(0.0, 50.0, 0.1), (30.0, 0.0, 0.2), (300.0, 5.0, 2.5)]:
        exact = float(closed_form_substance(s0, c_in, q_out, dt))
        numeric, ok = integrate_substance(s0, c_in, q_out, dt)
        assert ok, "Reference integration failed"
        assert abs(exact - numeric) < 1e-6, f"Closed form mismatch: {exact} vs {numeric}"

    # Test 2: Zero outflow is degenerate but does not raise
    degenerate = closed_form_substance(10.0, 5.0, 0.0, dt)
    assert np.isnan(degenerate), "Zero outflow should give NaN"

    # Test 3: Single feed tank drains at its rated output
    store = GraphStore()
    store.add_edge("feed", "sink", 1.0)
    feed = store.add_container("feed", 0.5, 500, 500, 1.0, 1.0)
    store.edges[0].curr_rate = feed.curr_out_rate

    engine = StepEngine(store)
    engine.step()
    assert abs(feed.curr_liquid_level - 499.5) < 1e-12, "Level update"
    assert feed.curr_concentration == 1.0, "Pure accumulator concentration"
    assert store.edges[0].curr_rate == 0.5, "Edge rate update"

    print("✓ All step engine validations passed")

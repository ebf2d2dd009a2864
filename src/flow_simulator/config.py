"""
Simulation Configuration
========================

Dataclass configuration for the mixing network simulator.

The tick duration is a model constant, not wall-clock time: a run paced
at any cadence produces the same trajectory.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class SimulationConfig:
    """
    Numerical constants of the mixing model and run-loop cadence.

    Attributes:
        tick_duration: Nominal length of one tick [time units]
        concentration_scale: Fixed factor applied to solute inflow
        terminal_concentration: Concentration above which a run ends
        interval_ms: Run-loop cadence between ticks [ms]
    """

    tick_duration: float = 1.0 / 60.0
    concentration_scale: float = 100.0
    terminal_concentration: float = 1.0
    interval_ms: float = 16.0

    def validate(self) -> None:
        """Validate configuration consistency."""
        if not np.isfinite(self.tick_duration) or self.tick_duration <= 0:
            raise ValueError(
                f"Tick duration must be positive and finite, got {self.tick_duration}"
            )
        if not np.isfinite(self.concentration_scale) or self.concentration_scale < 0:
            raise ValueError(
                f"Concentration scale cannot be negative: {self.concentration_scale}"
            )
        if not np.isfinite(self.terminal_concentration):
            raise ValueError(
                f"Terminal concentration must be finite: {self.terminal_concentration}"
            )
        if not np.isfinite(self.interval_ms) or self.interval_ms <= 0:
            raise ValueError(f"Run interval must be positive: {self.interval_ms}ms")


@dataclass
class DisplaySettings:
    """Formatting options for the view layer (labels only, no unit checks)."""

    accuracy: int = 2  # Decimal places
    substance_label: str = "substance"
    fluid_units: str = "L"
    time_units: str = "s"

    def validate(self) -> None:
        if not isinstance(self.accuracy, int) or self.accuracy < 0:
            raise ValueError(f"Accuracy must be a non-negative int: {self.accuracy}")

"""
Flow Simulator
==============

Mixing/flow dynamics across a directed network of containers.

Layers:
- core: Graph store, validation gate, step engine, scenarios
- session: Thread-safe facade for input forms and views
- runner: Fixed-cadence run loop
- display: NaN-aware formatting and colour scale

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Guilherme F. G. Santos"

from .config import DisplaySettings, SimulationConfig
from .session import (
    ContainerView,
    EdgeView,
    OperationResult,
    QueuedEdge,
    SimulationSession,
)
from .runner import RunLoop

__all__ = [
    "DisplaySettings",
    "SimulationConfig",
    "ContainerView",
    "EdgeView",
    "OperationResult",
    "QueuedEdge",
    "SimulationSession",
    "RunLoop",
]

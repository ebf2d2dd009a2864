"""
Mixing Network Core Package
===========================

First-order mixing dynamics across a directed network of containers.

This package provides:
- Network: Containers, flow edges and the graph store linking them by name
- Validation: Creation-time checks for container configurations
- Engine: Fixed-tick closed-form update of levels and concentrations
- Scenario: Topology loading, baselines and reset

USAGE EXAMPLE
============

```python
from flow_simulator.core import GraphStore, ScenarioLoader, StepEngine, demo_topology

store = GraphStore()
loader = ScenarioLoader(store)
loader.load_scenario(demo_topology())

engine = StepEngine(store)
for result in engine.run(600):
    pass

blood = store.find_container("bloodstream")
print(blood.curr_liquid_level, blood.curr_concentration)
```

PURE SIMULATION ARCHITECTURE
============================

WHAT THIS PACKAGE DOES:
- Keeps containers and edges consistent while the network is edited
- Advances the network one tick at a time
- Reports the terminal condition (a concentration above 1)

WHAT THIS PACKAGE DOES NOT DO:
- NO drawing, forms or popups
- NO timers or threads (see ``flow_simulator.runner``)
- NO persistence

EDGE CASES & LIMITATIONS
========================

1. **Zero outflow with inflow:**
   - Concentration becomes NaN (shown as "N/A"), no exception
   - Typical for a terminal sink container such as "out"

2. **Levels are not clamped:**
   - A level may exceed its capacity or go negative

3. **Dangling edges:**
   - An edge whose destination is not a container drains its source
   - An edge whose source is not a container is inert

Run validation: `python -m flow_simulator --validate` or call `run_all_validations()`

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

# Version
__version__ = "1.0.0"
__author__ = "Guilherme F. G. Santos"

# Graph store
from .network import (
    Container,
    FlowEdge,
    GraphStore,
    NetworkIndex,
    validate_network,
)

# Validation gate
from .validation import RejectionReason, ValidationResult, validate_container

# Step engine
from .engine import (
    StepEngine,
    TickResult,
    closed_form_substance,
    integrate_substance,
    validate_step_engine,
)

# Scenarios
from .scenario import (
    ContainerSpec,
    EdgeSpec,
    ScenarioLoader,
    Topology,
    demo_topology,
    pair_topology,
    validate_scenario,
)

__all__ = [
    # Network
    "Container",
    "FlowEdge",
    "GraphStore",
    "NetworkIndex",
    # Validation
    "RejectionReason",
    "ValidationResult",
    "validate_container",
    # Engine
    "StepEngine",
    "TickResult",
    "closed_form_substance",
    "integrate_substance",
    # Scenarios
    "ContainerSpec",
    "EdgeSpec",
    "ScenarioLoader",
    "Topology",
    "demo_topology",
    "pair_topology",
    # Validation functions
    "validate_network",
    "validate_step_engine",
    "validate_scenario",
]


def run_all_validations():
    """
    Run all simulation validation checks.

    This should be run after any code changes to ensure
    the tick semantics are maintained.
    """
    print("Running Mixing Network Validation Suite")
    print("=" * 70)

    print("\n1. Network...")
    validate_network()

    print("\n2. Step engine...")
    validate_step_engine()

    print("\n3. Scenarios...")
    validate_scenario()

    print("\n" + "=" * 70)
    print("ALL VALIDATIONS PASSED ✓")
    print("=" * 70)


if __name__ == "__main__":
    """Run all validations when package is executed."""
    run_all_validations()

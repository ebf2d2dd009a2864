import pytest

from flow_simulator import SimulationSession
from flow_simulator.core import (
    ContainerSpec,
    EdgeSpec,
    GraphStore,
    ScenarioLoader,
    StepEngine,
    Topology,
)


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def loader(store):
    return ScenarioLoader(store)


@pytest.fixture
def engine(store):
    return StepEngine(store)


@pytest.fixture
def session():
    return SimulationSession()


@pytest.fixture
def chain_topology():
    """Feed tank A -> mixing tank B -> dangling "out" sink."""
    return Topology(
        edges=[EdgeSpec("A", "B", 1.0), EdgeSpec("B", "out", 1.0)],
        containers=[
            ContainerSpec("A", 0.5, 500, 500, 1.0, 1.0),
            ContainerSpec("B", 0.1, 300, 800, 0.0, 0.9),
        ],
    )


@pytest.fixture
def saturating_topology():
    """B holds a small constant level, so its concentration climbs past 1."""
    return Topology(
        edges=[EdgeSpec("A", "B", 1.0), EdgeSpec("B", "out", 1.0)],
        containers=[
            ContainerSpec("A", 0.5, 500, 500, 1.0, 1.0),
            ContainerSpec("B", 0.5, 50, 100, 0.0, 0.5),
        ],
    )

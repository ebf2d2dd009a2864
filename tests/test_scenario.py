# tests/test_scenario.py

import pytest

from flow_simulator.core import (
    ContainerSpec,
    EdgeSpec,
    Topology,
    demo_topology,
)


def snapshot(store):
    containers = [
        (c.name, c.curr_liquid_level, c.curr_concentration, c.curr_in_rate, c.curr_out_rate)
        for c in store.containers
    ]
    edges = [(e.source, e.destination, e.curr_rate, e.curr_concentration) for e in store.edges]
    return containers, edges


def test_demo_loads_topology(loader):
    loader.load_scenario(demo_topology())
    store = loader.store

    assert store.container_names() == [
        "drugsIn",
        "stomach",
        "small intestine",
        "large intestine",
        "bloodstream",
        "out",
        "liver",
        "brain",
    ]
    assert len(store.edges) == 11
    assert len(store.inbound_edges("bloodstream")) == 4
    assert len(loader.baselines) == 8


def test_load_primes_edge_rates(loader):
    loader.load_scenario(demo_topology())
    store = loader.store

    for edge in store.edges:
        source = store.find_container(edge.source)
        assert edge.curr_rate == pytest.approx(source.curr_out_rate * edge.percent_out_rate)
        assert edge.curr_concentration == 0.0

    blood_to_liver = [e for e in store.outbound_edges("bloodstream") if e.destination == "liver"]
    assert blood_to_liver[0].curr_rate == pytest.approx(0.05)


def test_load_replaces_previous_network(loader, chain_topology):
    loader.load_scenario(demo_topology())
    loader.load_scenario(chain_topology)
    assert loader.store.container_names() == ["A", "B"]
    assert len(loader.store.edges) == 2
    assert [b.name for b in loader.baselines] == ["A", "B"]


def test_invalid_topology_leaves_network_untouched(loader, chain_topology):
    loader.load_scenario(chain_topology)
    bad = Topology(edges=[EdgeSpec("X", "Y", 1.5)])

    with pytest.raises(ValueError):
        loader.load_scenario(bad)
    assert loader.store.container_names() == ["A", "B"]


def test_duplicate_names_in_topology_rejected(loader):
    spec = ContainerSpec("A", 0.5, 500, 500, 1.0, 1.0)
    with pytest.raises(ValueError):
        loader.load_scenario(Topology(containers=[spec, spec]))


def test_reset_restores_baseline(loader, engine):
    loader.load_scenario(demo_topology())
    store = loader.store
    initial = snapshot(store)

    engine.run(300)
    assert snapshot(store) != initial

    loader.reset()
    assert snapshot(store) == initial


def test_reset_is_idempotent(loader, engine):
    loader.load_scenario(demo_topology())
    engine.run(120)

    loader.reset()
    once = snapshot(loader.store)
    loader.reset()
    assert snapshot(loader.store) == once


def test_reset_matches_by_handle_after_removal(loader, engine):
    loader.load_scenario(demo_topology())
    store = loader.store
    stomach = store.find_container("stomach")
    loader.forget(stomach.handle)
    store.remove_container("stomach")
    engine.run(60)

    loader.reset()

    for container in store.containers:
        spec = loader.baseline_for(container.handle)
        assert spec.name == container.name
        assert container.curr_liquid_level == spec.start_level
        assert container.curr_concentration == spec.start_concentration


def test_reset_rederives_out_rate(loader, engine):
    loader.load_scenario(demo_topology())
    engine.run(60)
    loader.reset()
    for c in loader.store.containers:
        assert c.curr_out_rate == min(c.curr_liquid_level, c.max_out_rate)


def test_capture_baseline_for_container_added_later(loader):
    loader.load_scenario(demo_topology())
    extra = loader.store.add_container("kidney", 0.1, 200, 500, 0.0, 0.3)
    spec = loader.capture_baseline(extra)

    extra.curr_liquid_level = 10.0
    loader.reset()

    assert spec.start_level == 200
    assert extra.curr_liquid_level == 200


def test_clear_drops_everything(loader):
    loader.load_scenario(demo_topology())
    loader.clear()
    assert len(loader.store) == 0
    assert loader.store.edges == ()
    assert loader.baselines == ()

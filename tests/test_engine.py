# tests/test_engine.py

import math

import numpy as np
import pytest

from flow_simulator import SimulationConfig
from flow_simulator.core import (
    StepEngine,
    closed_form_substance,
    demo_topology,
    integrate_substance,
    pair_topology,
)

DT = 1.0 / 60.0


def test_closed_form_matches_numerical_integration():
    """The one-tick update is the exact solution of dS/dt = c_in - q_out*S."""
    for s0, c_in, q_out in [(0.0, 50.0, 0.1), (30.0, 0.0, 0.2), (300.0, 5.0, 2.5)]:
        exact = float(closed_form_substance(s0, c_in, q_out, DT))
        numeric, ok = integrate_substance(s0, c_in, q_out, DT)
        assert ok
        assert exact == pytest.approx(numeric, rel=1e-8, abs=1e-10)


def test_closed_form_zero_outflow_is_nan_not_error():
    assert np.isnan(closed_form_substance(10.0, 5.0, 0.0, DT))
    assert np.isnan(closed_form_substance(10.0, 0.0, 0.0, DT))


def test_pair_scenario_first_tick(loader, engine):
    """Feed A (out 0.5, level 500, conc 1) draining fully into B."""
    loader.load_scenario(pair_topology())
    store = loader.store

    engine.step()

    a = store.find_container("A")
    edge = store.edges[0]
    assert a.curr_out_rate == pytest.approx(0.5)
    assert a.curr_liquid_level == pytest.approx(499.5)
    assert a.curr_concentration == pytest.approx(1.0)
    assert edge.curr_rate == pytest.approx(0.5)
    assert edge.curr_concentration == pytest.approx(1.0)


def test_one_tick_lag_on_unprimed_edge(store, engine):
    """Containers read edge rates from the previous tick's edge pass."""
    store.add_edge("A", "B", 1.0)
    store.add_container("A", 0.5, 500, 500, 1.0, 1.0)
    store.add_container("B", 0.1, 300, 800, 0.0, 0.9)
    a, b = store.find_container("A"), store.find_container("B")

    engine.step()
    assert b.curr_in_rate == 0.0
    assert a.curr_liquid_level == 500.0
    assert store.edges[0].curr_rate == pytest.approx(0.5)

    engine.step()
    assert b.curr_in_rate == pytest.approx(0.5)
    assert a.curr_liquid_level == pytest.approx(499.5)


def test_mixing_uses_closed_form(loader, engine, chain_topology):
    loader.load_scenario(chain_topology)
    b = loader.store.find_container("B")

    # Tick 1: inbound edge still carries the load-time concentration of 0
    engine.step()
    assert b.curr_liquid_level == pytest.approx(300.4)
    assert b.curr_concentration == 0.0

    # Tick 2: 0.5 of concentration 1 flows in, 0.1 flows out
    engine.step()
    y = 0.5 * 1.0 * 100 / 0.1
    expected_substance = y + (0.0 - y) * math.exp(-0.1 / 60)
    assert b.curr_liquid_level == pytest.approx(300.8)
    assert b.curr_concentration == pytest.approx(expected_substance / 300.8)
    assert b.curr_in_rate == pytest.approx(0.5)


def test_source_container_is_pure_accumulator(loader, engine):
    """No inbound edges: substance equals level, so concentration stays 1."""
    loader.load_scenario(demo_topology())
    feed = loader.store.find_container("drugsIn")

    for _ in range(50):
        engine.step()
        assert feed.curr_concentration == 1.0


def test_zero_outflow_with_inflow_gives_nan(store, engine):
    store.add_container("sink", 0.1, 300, 800, 0.0, 0.5)
    edge = store.add_edge("feed", "sink", 1.0)
    edge.curr_rate = 0.5
    edge.curr_concentration = 1.0

    result = engine.step()

    sink = store.find_container("sink")
    assert np.isnan(sink.curr_concentration)
    assert sink.curr_liquid_level == pytest.approx(300.5)
    assert not result.terminal


def test_empty_container_has_zero_concentration(store, engine):
    store.add_container("empty", 0.1, 0, 100, 0.5, 0.5)
    engine.step()
    assert store.find_container("empty").curr_concentration == 0.0


def test_unresolved_source_edge_is_inert(store, engine):
    store.add_container("B", 0.1, 300, 800, 0.0, 0.9)
    edge = store.add_edge("ghost", "B", 1.0)
    edge.curr_rate = 0.25
    edge.curr_concentration = 0.5

    engine.step()

    # Not updated by the edge pass, but still feeds its destination
    assert edge.curr_rate == 0.25
    assert edge.curr_concentration == 0.5
    assert store.find_container("B").curr_in_rate == pytest.approx(0.25)


def test_rate_invariants_hold_every_tick(loader, engine):
    loader.load_scenario(demo_topology())
    store = loader.store

    for _ in range(200):
        engine.step()
        for c in store.containers:
            assert c.curr_out_rate == pytest.approx(
                min(c.curr_liquid_level, c.max_out_rate)
            )
        for e in store.edges:
            source = store.find_container(e.source)
            assert e.curr_rate == pytest.approx(
                e.percent_out_rate * source.curr_out_rate
            )


def test_dangling_destination_drains_source(loader, engine, chain_topology):
    loader.load_scenario(chain_topology)
    b = loader.store.find_container("B")
    engine.run(10)
    # 0.5 in, 0.1 out to the "out" sink every tick
    assert b.curr_liquid_level == pytest.approx(300 + 10 * 0.4)


def test_terminal_condition_stops_run(loader, engine, saturating_topology):
    loader.load_scenario(saturating_topology)

    results = engine.run(1000)

    assert len(results) < 1000
    assert results[-1].terminal
    assert results[-1].over_limit == ["B"]
    assert not any(r.terminal for r in results[:-1])
    assert loader.store.find_container("B").curr_concentration > 1.0


def test_run_without_stop_on_terminal(loader, engine, saturating_topology):
    loader.load_scenario(saturating_topology)
    results = engine.run(200, stop_on_terminal=False)
    assert len(results) == 200
    assert engine.tick_count == 200
    assert engine.time == pytest.approx(200 / 60)


def test_tick_duration_is_configurable(store):
    store.add_container("B", 0.1, 300, 800, 0.0, 0.9)
    edge_in = store.add_edge("ghost", "B", 1.0)
    edge_in.curr_rate, edge_in.curr_concentration = 0.1, 1.0
    edge_out = store.add_edge("B", "out", 1.0)
    edge_out.curr_rate = 0.1

    engine = StepEngine(store, SimulationConfig(tick_duration=1.0))
    engine.step()

    y = 0.1 * 1.0 * 100 / 0.1
    expected = y + (0.0 - y) * math.exp(-0.1 * 1.0)
    assert store.find_container("B").curr_concentration == pytest.approx(expected / 300)


def test_invalid_config_rejected(store):
    with pytest.raises(ValueError):
        StepEngine(store, SimulationConfig(tick_duration=0.0))


def test_empty_network_steps(engine):
    result = engine.step()
    assert result.tick == 1
    assert not result.terminal

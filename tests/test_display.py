# tests/test_display.py

import math

import pytest

from flow_simulator import DisplaySettings
from flow_simulator.core import demo_topology
from flow_simulator.display import (
    NOT_AVAILABLE,
    UNDEFINED_RGBA,
    concentration_ratio,
    concentration_rgba,
    describe_container,
    fill_fraction,
    format_state_table,
    format_value,
)


def test_format_value():
    assert format_value(1.23456) == "1.23"
    assert format_value(1.23456, accuracy=4) == "1.2346"
    assert format_value(float("nan")) == NOT_AVAILABLE


@pytest.mark.parametrize(
    "ratio, colour",
    [
        (0.0, "rgba(51,204,255,0.5)"),
        (0.5, "rgba(102,102,255,0.5)"),
        (1.0, "rgba(153,0,255,0.5)"),
    ],
)
def test_concentration_colour_scale(ratio, colour):
    assert concentration_rgba(ratio) == colour


def test_undefined_ratio_colour():
    assert concentration_rgba(float("nan")) == UNDEFINED_RGBA


def test_concentration_ratio():
    assert concentration_ratio(0.45, 0.9) == pytest.approx(0.5)
    assert math.isnan(concentration_ratio(float("nan"), 0.9))
    assert math.isnan(concentration_ratio(0.0, 0.0))


def test_fill_fraction():
    assert fill_fraction(300, 800) == pytest.approx(0.375)
    assert fill_fraction(10, 0) == 0.0


def test_describe_container_shows_units(session):
    session.load_scenario(demo_topology())
    view = session.container_views()["stomach"]
    settings = DisplaySettings(accuracy=1, substance_label="mg", fluid_units="mL", time_units="min")

    lines = describe_container(view, settings)

    assert lines[0] == "Concentration: 0.0 mg/mL"
    assert lines[2] == "Current fluid level: 300.0 mL"
    assert lines[4] == "Output flow: 0.1 mL/min"


def test_state_table_renders_nan_as_not_available(session):
    session.load_scenario(demo_topology())
    session.step_once()

    table = format_state_table(session.container_views().values(), DisplaySettings())
    rows = table.splitlines()

    assert len(rows) == 2 + 8
    out_row = next(r for r in rows if r.startswith("out "))
    assert NOT_AVAILABLE in out_row
    assert rows[2].startswith("drugsIn")


def test_invalid_display_settings():
    with pytest.raises(ValueError):
        DisplaySettings(accuracy=-1).validate()

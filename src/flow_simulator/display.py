"""
Display Helpers
===============

Formatting for whatever front end draws the network.

The core never formats anything; a view reads ``ContainerView`` /
``EdgeView`` snapshots from the session and uses these helpers to turn
them into text and colours. NaN (undefined concentration) is always shown
as "N/A".

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import math
from typing import Iterable, List

import numpy as np

from .config import DisplaySettings

NOT_AVAILABLE = "N/A"

# Colour shown when the concentration ratio is undefined
UNDEFINED_RGBA = "rgba(153,0,255,0.5)"


def format_value(value: float, accuracy: int = 2) -> str:
    """Fixed-point formatting with NaN rendered as N/A."""
    if value is None or np.isnan(value):
        return NOT_AVAILABLE
    return f"{value:.{accuracy}f}"


def concentration_rgba(ratio: float) -> str:
    """
    Colour from light blue (ratio 0) to purple (ratio 1).

    Args:
        ratio: Concentration divided by lethal concentration

    Returns:
        CSS rgba() string
    """
    if ratio is None or np.isnan(ratio):
        return UNDEFINED_RGBA
    red = math.floor(102 * ratio) + 51
    green = math.floor(-204 * ratio) + 204
    return f"rgba({red},{green},255,0.5)"


def concentration_ratio(concentration: float, lethal_concentration: float) -> float:
    """Concentration relative to the lethal level (NaN when undefined)."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(concentration) / np.float64(lethal_concentration))


def fill_fraction(level: float, capacity: float) -> float:
    """Fraction of the container drawn as filled."""
    if capacity <= 0:
        return 0.0
    return level / capacity


def describe_container(view, settings: DisplaySettings) -> List[str]:
    """Detail lines shown next to a selected container."""
    acc = settings.accuracy
    fluid = settings.fluid_units
    rate_units = f"{fluid}/{settings.time_units}"
    return [
        f"Concentration: {format_value(view.concentration, acc)} "
        f"{settings.substance_label}/{fluid}",
        f"Lethal concentration: {format_value(view.lethal_concentration, acc)} {fluid}",
        f"Current fluid level: {format_value(view.liquid_level, acc)} {fluid}",
        f"Input flow: {format_value(view.in_rate, acc)} {rate_units}",
        f"Output flow: {format_value(view.out_rate, acc)} {rate_units}",
    ]


def format_state_table(views: Iterable, settings: DisplaySettings) -> str:
    """Plain-text table of container states for logs and terminals."""
    acc = settings.accuracy
    lines = [
        f"{'Container':<18} {'Level':>12} {'Conc':>12} {'In':>10} {'Out':>10}",
        "-" * 66,
    ]
    for view in views:
        lines.append(
            f"{view.name:<18} "
            f"{format_value(view.liquid_level, acc):>12} "
            f"{format_value(view.concentration, acc):>12} "
            f"{format_value(view.in_rate, acc):>10} "
            f"{format_value(view.out_rate, acc):>10}"
        )
    return "\n".join(lines)

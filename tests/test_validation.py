# tests/test_validation.py

import pytest

from flow_simulator.core import RejectionReason, validate_container

VALID = dict(
    name="tank",
    max_out_rate=0.1,
    start_level=300,
    max_capacity=800,
    start_concentration=0.0,
    lethal_concentration=0.9,
    pending_edge_percent_sum=1.0,
)


def check(**overrides):
    return validate_container(**{**VALID, **overrides})


def test_valid_configuration_accepted():
    result = check()
    assert result.ok
    assert result.reason is None
    assert result.message == ""


@pytest.mark.parametrize(
    "overrides, reason",
    [
        (dict(max_out_rate=400), RejectionReason.OUT_RATE_ABOVE_LEVEL),
        (dict(start_concentration=1.01), RejectionReason.CONCENTRATION_ABOVE_ONE),
        (dict(start_level=900), RejectionReason.LEVEL_ABOVE_CAPACITY),
        (dict(pending_edge_percent_sum=1.2), RejectionReason.OUTPUTS_EXCEED_ONE),
    ],
)
def test_each_rule(overrides, reason):
    result = check(**overrides)
    assert not result.ok
    assert result.reason is reason
    assert result.message == reason.value


def test_out_rate_above_capacity_reached_with_undefined_level():
    # NaN compares false, so only the last rule can catch this one
    result = check(max_out_rate=900, start_level=float("nan"))
    assert result.reason is RejectionReason.OUT_RATE_ABOVE_CAPACITY


def test_first_failing_rule_wins():
    """Violating rules 1 and 4 together reports rule 1."""
    result = check(max_out_rate=400, pending_edge_percent_sum=1.5)
    assert result.reason is RejectionReason.OUT_RATE_ABOVE_LEVEL


def test_precedence_concentration_before_capacity():
    result = check(start_concentration=2.0, start_level=900)
    assert result.reason is RejectionReason.CONCENTRATION_ABOVE_ONE


def test_flow_sum_message():
    result = check(pending_edge_percent_sum=0.6 + 0.6)
    assert result.message == "flow outputs sum must not exceed 1"


def test_exact_boundaries_accepted():
    result = check(
        max_out_rate=300,
        start_level=300,
        max_capacity=300,
        start_concentration=1.0,
        pending_edge_percent_sum=1.0,
    )
    assert result.ok

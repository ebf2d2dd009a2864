"""
Container Validation Gate
=========================

Rejects structurally invalid container configurations before they reach
the graph store.

The checks run in a fixed precedence order and the first failing check
wins, so a configuration violating several rules always reports the same
reason:

1. Maximum output rate above the starting level
2. Initial concentration above 1
3. Starting level above the maximum capacity
4. Queued flow outputs summing above 1
5. Maximum output rate above the maximum capacity

Failures are returned as data, never raised.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RejectionReason(Enum):
    """Why a container configuration was refused."""

    OUT_RATE_ABOVE_LEVEL = (
        "starting liquid level cannot be less than the maximum output rate"
    )
    CONCENTRATION_ABOVE_ONE = "initial concentration cannot be greater than 1"
    LEVEL_ABOVE_CAPACITY = (
        "starting liquid level cannot be greater than the maximum capacity"
    )
    OUTPUTS_EXCEED_ONE = "flow outputs sum must not exceed 1"
    OUT_RATE_ABOVE_CAPACITY = (
        "maximum out rate cannot be greater than maximum capacity"
    )
    DUPLICATE_NAME = "a container with this name already exists"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation check."""

    ok: bool
    reason: Optional[RejectionReason] = None

    @property
    def message(self) -> str:
        return "" if self.reason is None else self.reason.value

    @classmethod
    def accepted(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "ValidationResult":
        return cls(ok=False, reason=reason)


def validate_container(
    name: str,
    max_out_rate: float,
    start_level: float,
    max_capacity: float,
    start_concentration: float,
    lethal_concentration: float,
    pending_edge_percent_sum: float = 0.0,
) -> ValidationResult:
    """
    Check a container configuration against the creation rules.

    ``name`` and ``lethal_concentration`` take part in no rule; they are
    accepted so callers can pass a full container specification.

    Args:
        name: Container name
        max_out_rate: Maximum output rate
        start_level: Starting liquid level
        max_capacity: Maximum capacity
        start_concentration: Initial concentration
        lethal_concentration: Display scaling concentration
        pending_edge_percent_sum: Sum of percentages of the queued outbound edges

    Returns:
        ValidationResult, rejected with the first failing rule
    """
    if max_out_rate > start_level:
        return ValidationResult.rejected(RejectionReason.OUT_RATE_ABOVE_LEVEL)
    if start_concentration > 1.0:
        return ValidationResult.rejected(RejectionReason.CONCENTRATION_ABOVE_ONE)
    if start_level > max_capacity:
        return ValidationResult.rejected(RejectionReason.LEVEL_ABOVE_CAPACITY)
    if pending_edge_percent_sum > 1:
        return ValidationResult.rejected(RejectionReason.OUTPUTS_EXCEED_ONE)
    if max_out_rate > max_capacity:
        return ValidationResult.rejected(RejectionReason.OUT_RATE_ABOVE_CAPACITY)
    return ValidationResult.accepted()

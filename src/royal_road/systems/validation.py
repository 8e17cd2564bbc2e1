"""
Numeric boundary validation.

Pure functions: nothing here mutates engine state. Values that come in
from outside the engine (save files, host ticks) pass through these
checks so NaN, infinities and negatives never propagate.
"""

from __future__ import annotations

import logging
import math

from ..state.schema import RateKind, ResourceKind, SaveSnapshot

logger = logging.getLogger(__name__)


def validate_resource_amount(amount: float, name: str, max_resource: float) -> tuple[bool, str]:
    """
    Check a resource amount.

    Returns (ok, reason) tuple.
    """
    if math.isnan(amount) or math.isinf(amount):
        return False, f"Invalid {name} value detected!"
    if amount < 0:
        return False, f"{name} cannot be negative!"
    if amount > max_resource:
        return False, f"{name} has reached the maximum cap!"
    return True, ""


def validate_production_rate(rate: float, name: str, max_rate: float) -> tuple[bool, str]:
    """Check a per-second rate. Returns (ok, reason) tuple."""
    if math.isnan(rate) or math.isinf(rate):
        return False, f"Invalid {name} value detected!"
    if rate < 0:
        return False, f"{name} cannot be negative!"
    if rate > max_rate:
        return False, f"{name} exceeds maximum allowed rate!"
    return True, ""


def clamp_amount(value: float, cap: float) -> float:
    """Clamp into [0, cap]; non-finite values become 0."""
    if not math.isfinite(value) or value < 0:
        return 0.0
    return min(float(value), cap)


def sanitize_snapshot(
    snapshot: SaveSnapshot,
    max_resource: float,
    max_rate: float,
) -> list[str]:
    """
    Clamp out-of-range values in a snapshot in place.

    Returns a list of the problems found (empty if the snapshot was clean).
    """
    issues: list[str] = []

    resources = snapshot.resource_state
    for kind in ResourceKind:
        value = resources.balance(kind)
        ok, reason = validate_resource_amount(value, kind.value, max_resource)
        if not ok:
            issues.append(reason)
            # Direct assignment: a clamp is not earnings
            setattr(resources, kind.value, clamp_amount(value, max_resource))

    production = snapshot.production_state
    for kind in (RateKind.RICE_PER_SECOND, RateKind.HONOR_PER_SECOND):
        value = production.rate(kind)
        ok, reason = validate_production_rate(value, kind.value, max_rate)
        if not ok:
            issues.append(reason)
            production.set_rate(kind, clamp_amount(value, max_rate))

    for issue in issues:
        logger.warning(f"Snapshot clamped: {issue}")

    return issues

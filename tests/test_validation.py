"""Tests for numeric boundary validation."""

import math

import pytest

from royal_road.state.schema import ProductionState, ResourceState, SaveSnapshot
from royal_road.systems.validation import (
    clamp_amount,
    sanitize_snapshot,
    validate_production_rate,
    validate_resource_amount,
)


class TestValidateAmounts:
    """Test the pure checks."""

    def test_valid(self):
        assert validate_resource_amount(10, "Rice", 1e15) == (True, "")

    @pytest.mark.parametrize("amount", [math.nan, math.inf])
    def test_non_finite(self, amount):
        ok, reason = validate_resource_amount(amount, "Rice", 1e15)
        assert not ok
        assert reason == "Invalid Rice value detected!"

    def test_negative(self):
        assert validate_resource_amount(-1, "Honor", 1e15) == (False, "Honor cannot be negative!")

    def test_over_cap(self):
        ok, reason = validate_resource_amount(2e15, "Rice", 1e15)
        assert not ok
        assert "maximum cap" in reason

    def test_rate_over_cap(self):
        ok, reason = validate_production_rate(2e12, "Rice per second", 1e12)
        assert not ok
        assert "maximum allowed rate" in reason


class TestClamp:
    @pytest.mark.parametrize("value,expected", [
        (5, 5),
        (-5, 0),
        (20, 10),
        (math.nan, 0),
        (math.inf, 0),
    ])
    def test_clamp(self, value, expected):
        assert clamp_amount(value, 10) == expected


class TestSanitizeSnapshot:
    """Test in-place clamping of loaded snapshots."""

    def test_clean_snapshot(self):
        assert sanitize_snapshot(SaveSnapshot(), 1e15, 1e12) == []

    def test_clamps_and_reports(self, caplog):
        snapshot = SaveSnapshot(
            resource_state=ResourceState(rice=5e15, total_rice_earned=5e15),
            production_state=ProductionState(honor_per_second=5e12),
        )

        issues = sanitize_snapshot(snapshot, 1e15, 1e12)

        assert len(issues) == 2
        assert snapshot.resource_state.rice == 1e15
        assert snapshot.production_state.honor_per_second == 1e12
        # Clamping is not spending
        assert snapshot.resource_state.total_rice_earned == 5e15
        assert "Snapshot clamped" in caplog.text

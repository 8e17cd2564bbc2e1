"""Tests for game state models."""

import math
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from royal_road.state.schema import (
    SAVE_VERSION,
    PlayerClass,
    ProductionState,
    RateKind,
    ResourceKind,
    ResourceState,
    SaveSnapshot,
    UpgradeProgress,
)


class TestPlayerClass:
    """Test the class ladder enum."""

    def test_ladder_is_ordered(self):
        assert PlayerClass.SLAVE < PlayerClass.TENANT_FARMER < PlayerClass.KING

    def test_next_moves_one_rung(self):
        assert PlayerClass.SLAVE.next == PlayerClass.TENANT_FARMER
        assert PlayerClass.LORD.next == PlayerClass.KING

    def test_king_is_terminal(self):
        assert PlayerClass.KING.is_terminal
        assert PlayerClass.KING.next is None
        assert not PlayerClass.NOBLE.is_terminal

    def test_label(self):
        assert PlayerClass.TENANT_FARMER.label == "Tenant Farmer"


class TestResourceState:
    """Test balance clamping and lifetime counters."""

    def test_negative_input_clamped(self):
        state = ResourceState(rice=-5, honor=-1)
        assert state.rice == 0
        assert state.honor == 0

    def test_nan_clamped(self):
        state = ResourceState(rice=math.nan)
        assert state.rice == 0

    @pytest.mark.parametrize("value", [-5, math.nan, -math.inf])
    def test_direct_assignment_clamped(self, value):
        state = ResourceState(rice=10)
        state.rice = value
        assert state.rice == 0

    def test_increase_adds_to_total(self):
        state = ResourceState()
        state.set_balance(ResourceKind.RICE, 10)
        assert state.rice == 10
        assert state.total_rice_earned == 10

    def test_decrease_leaves_total(self):
        state = ResourceState()
        state.set_balance(ResourceKind.RICE, 10)
        state.set_balance(ResourceKind.RICE, 4)
        assert state.rice == 4
        assert state.total_rice_earned == 10

        state.set_balance(ResourceKind.RICE, 6)
        assert state.total_rice_earned == 12

    def test_set_negative_clamps_to_zero(self):
        state = ResourceState(honor=5)
        assert state.set_balance(ResourceKind.HONOR, -20) == 0
        assert state.honor == 0

    def test_koku_has_no_counter(self):
        state = ResourceState()
        state.set_balance(ResourceKind.KOKU, 3)
        assert state.koku == 3
        assert state.total_earned(ResourceKind.KOKU) == 0


class TestProductionState:
    """Test rate clamping."""

    def test_defaults(self):
        production = ProductionState()
        assert production.rice_per_tap == 1.0
        assert production.rice_per_second == 0
        assert production.tap_count == 0

    def test_set_rate_clamps(self):
        production = ProductionState()
        production.set_rate(RateKind.RICE_PER_SECOND, -3)
        assert production.rice_per_second == 0

    def test_increment_taps(self):
        production = ProductionState()
        assert production.increment_taps() == 1
        assert production.increment_taps() == 2

    def test_direct_assignment_clamped(self):
        production = ProductionState()
        production.honor_per_second = -2
        production.rice_per_tap = math.nan
        assert production.honor_per_second == 0
        assert production.rice_per_tap == 0

    def test_negative_tap_count_rejected(self):
        production = ProductionState()
        with pytest.raises(ValidationError):
            production.tap_count = -1


class TestUpgradeProgress:
    """Test the id -> level map."""

    def test_unknown_id_is_zero(self):
        assert UpgradeProgress().get_level("nothing") == 0

    def test_increment_creates_entry(self):
        progress = UpgradeProgress()
        assert progress.increment("sickle") == 1
        assert progress.increment("sickle") == 2
        assert progress.has("sickle")
        assert len(progress) == 1

    def test_negative_levels_clamped_on_load(self):
        progress = UpgradeProgress({"sickle": -3})
        assert progress.get_level("sickle") == 0


class TestSaveSnapshot:
    """Test the versioned save payload."""

    def test_defaults(self):
        snapshot = SaveSnapshot()
        assert snapshot.save_version == SAVE_VERSION
        assert snapshot.player_class == PlayerClass.SLAVE
        assert snapshot.save_timestamp.tzinfo is not None

    def test_dumps_camel_case(self):
        data = SaveSnapshot().model_dump(by_alias=True)
        assert "saveVersion" in data
        assert "resourceState" in data
        assert "totalPlayTimeSeconds" in data
        assert "totalRiceEarned" in data["resourceState"]

    def test_loads_camel_case(self):
        snapshot = SaveSnapshot.model_validate({
            "saveVersion": 1,
            "playerClass": 2,
            "upgradeProgress": {"granary": 3},
            "resourceState": {"rice": 12.5},
        })
        assert snapshot.player_class == PlayerClass.COMMONER
        assert snapshot.upgrade_progress.get_level("granary") == 3
        assert snapshot.resource_state.rice == 12.5

    def test_version_must_be_positive(self):
        with pytest.raises(ValidationError):
            SaveSnapshot(save_version=0)

    def test_naive_timestamp_assumed_utc(self):
        snapshot = SaveSnapshot(save_timestamp=datetime(2025, 1, 1, 9, 30))
        assert snapshot.save_timestamp.tzinfo == timezone.utc
        assert snapshot.last_save_timestamp.hour == 9

    def test_accumulated_play_time(self):
        snapshot = SaveSnapshot(total_play_time_seconds=90)
        assert snapshot.accumulated_play_time.total_seconds() == 90

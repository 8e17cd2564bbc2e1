"""
Pydantic models for Royal Road game state.

All saved state is versioned for migration support. Field names are
snake_case in Python and camelCase on disk.
"""

import math
from datetime import datetime, timedelta, timezone
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator
from pydantic.alias_generators import to_camel


SAVE_VERSION = 1


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class PlayerClass(IntEnum):
    """Social class ladder. Ascension moves exactly one rung up."""
    SLAVE = 0           # 노비
    TENANT_FARMER = 1   # 소작농
    COMMONER = 2        # 평민
    NOBLE = 3           # 양반
    LORD = 4            # 영주
    KING = 5            # 왕

    @property
    def is_terminal(self) -> bool:
        return self is PlayerClass.KING

    @property
    def next(self) -> "PlayerClass | None":
        """The next rung, or None at King."""
        if self.is_terminal:
            return None
        return PlayerClass(self.value + 1)

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


class ResourceKind(str, Enum):
    RICE = "rice"
    HONOR = "honor"
    KOKU = "koku"       # Tracked, not produced or spent yet


class RateKind(str, Enum):
    RICE_PER_SECOND = "rice_per_second"
    HONOR_PER_SECOND = "honor_per_second"
    RICE_PER_TAP = "rice_per_tap"


class UpgradeKind(str, Enum):
    TAP = "tap"                 # Increases rice per tap
    PRODUCTION = "production"   # Increases rice per second


class MultiplierKind(str, Enum):
    RICE = "rice"
    HONOR = "honor"
    TAP = "tap"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def non_negative(value: float) -> float:
    """Clamp to >= 0. NaN and infinities collapse to 0."""
    if not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


class CamelModel(BaseModel):
    """Base for models persisted with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


# -----------------------------------------------------------------------------
# Core Models
# -----------------------------------------------------------------------------

# Balance field -> paired "total earned" counter
_EARNED_COUNTERS: dict[ResourceKind, str] = {
    ResourceKind.RICE: "total_rice_earned",
    ResourceKind.HONOR: "total_honor_earned",
}


class ResourceState(CamelModel):
    """
    Resource balances and lifetime earnings.

    Balances are never negative. Total-earned counters only grow: an
    increase in a balance adds the same delta to its counter, a decrease
    leaves the counter alone.
    """
    rice: float = 0.0
    honor: float = 0.0
    total_rice_earned: float = 0.0
    total_honor_earned: float = 0.0
    koku: float = 0.0

    @field_validator("rice", "honor", "total_rice_earned", "total_honor_earned", "koku")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return non_negative(value)

    def balance(self, kind: ResourceKind) -> float:
        return getattr(self, kind.value)

    def set_balance(self, kind: ResourceKind, value: float) -> float:
        """Set a balance, clamping to >= 0. Returns the stored value."""
        value = non_negative(value)
        delta = value - self.balance(kind)
        counter = _EARNED_COUNTERS.get(kind)
        if counter and delta > 0:
            setattr(self, counter, getattr(self, counter) + delta)
        setattr(self, kind.value, value)
        return value

    def total_earned(self, kind: ResourceKind) -> float:
        counter = _EARNED_COUNTERS.get(kind)
        return getattr(self, counter) if counter else 0.0


class ProductionState(CamelModel):
    """Per-second and per-tap rates."""
    rice_per_second: float = 0.0
    honor_per_second: float = 0.0
    rice_per_tap: float = 1.0
    tap_count: int = Field(default=0, ge=0)

    @field_validator("rice_per_second", "honor_per_second", "rice_per_tap")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return non_negative(value)

    def rate(self, kind: RateKind) -> float:
        return getattr(self, kind.value)

    def set_rate(self, kind: RateKind, value: float) -> float:
        value = non_negative(value)
        setattr(self, kind.value, value)
        return value

    def increment_taps(self) -> int:
        self.tap_count += 1
        return self.tap_count


class UpgradeProgress(RootModel[dict[str, int]]):
    """
    Item id -> level (or count). Unknown ids read as 0.

    Entries are created on first purchase and only removed by a full
    progression reset.
    """
    root: dict[str, int] = Field(default_factory=dict)

    @field_validator("root")
    @classmethod
    def _clamp_levels(cls, value: dict[str, int]) -> dict[str, int]:
        return {key: max(0, level) for key, level in value.items()}

    def get_level(self, item_id: str) -> int:
        return self.root.get(item_id, 0)

    def set_level(self, item_id: str, level: int) -> None:
        self.root[item_id] = max(0, level)

    def increment(self, item_id: str) -> int:
        level = self.get_level(item_id) + 1
        self.set_level(item_id, level)
        return level

    def has(self, item_id: str) -> bool:
        return self.get_level(item_id) > 0

    def items(self):
        return self.root.items()

    def __len__(self) -> int:
        return len(self.root)


class SaveSnapshot(CamelModel):
    """
    Versioned save payload.

    Built from a deep copy of live engine state on every save request.
    save_timestamp doubles as the last-save time for offline earnings.
    """
    save_version: int = Field(default=SAVE_VERSION, ge=1)
    resource_state: ResourceState = Field(default_factory=ResourceState)
    production_state: ProductionState = Field(default_factory=ProductionState)
    player_class: PlayerClass = PlayerClass.SLAVE
    upgrade_progress: UpgradeProgress = Field(default_factory=UpgradeProgress)
    honor_buildings: UpgradeProgress = Field(default_factory=UpgradeProgress)
    save_timestamp: datetime = Field(default_factory=utc_now)
    total_play_time_seconds: int = Field(default=0, ge=0)

    @field_validator("save_timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Older saves stored naive local timestamps
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def last_save_timestamp(self) -> datetime:
        return self.save_timestamp

    @property
    def accumulated_play_time(self) -> timedelta:
        return timedelta(seconds=self.total_play_time_seconds)

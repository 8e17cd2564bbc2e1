"""
Class progression for Royal Road.

The player climbs a fixed ladder: Slave -> Tenant Farmer -> Commoner ->
Noble -> Lord -> King. Each rung costs honor (spent, not just checked)
and demands a minimum rice production rate. King is terminal.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from pydantic import BaseModel, ConfigDict

from ..errors import AlreadyAtMaxClassError, RequirementsNotMetError
from ..state.event_bus import AscensionAvailable, ClassChanged
from ..state.schema import MultiplierKind, PlayerClass, ResourceKind

if TYPE_CHECKING:
    from ..state.engine import PlayerProgressionEngine

logger = logging.getLogger(__name__)


class ClassRequirement(BaseModel):
    """What it takes to reach a class, and what that class grants."""
    model_config = ConfigDict(frozen=True)

    target_class: PlayerClass
    honor_required: float
    minimum_production_rate: float = 0.0
    name: str
    description: str = ""
    unlocked_features: tuple[str, ...] = ()

    # Gameplay multipliers, compounded across every rung reached
    rice_multiplier: float = 1.0
    honor_multiplier: float = 1.0
    tap_multiplier: float = 1.0

    def multiplier(self, kind: MultiplierKind) -> float:
        return {
            MultiplierKind.RICE: self.rice_multiplier,
            MultiplierKind.HONOR: self.honor_multiplier,
            MultiplierKind.TAP: self.tap_multiplier,
        }[kind]


class ClassProgressionTable:
    """Immutable lookup of requirements by target class."""

    def __init__(self, requirements: Iterable[ClassRequirement]):
        self._requirements: dict[PlayerClass, ClassRequirement] = {}
        for requirement in requirements:
            if requirement.target_class == PlayerClass.SLAVE:
                raise ValueError("Slave is the starting class and has no requirement")
            if requirement.target_class in self._requirements:
                raise ValueError(f"Duplicate requirement for {requirement.target_class.label}")
            self._requirements[requirement.target_class] = requirement

    def get(self, target_class: PlayerClass) -> ClassRequirement | None:
        return self._requirements.get(target_class)

    def next_requirement(self, current: PlayerClass) -> ClassRequirement | None:
        """Requirement for the rung above current, or None at King."""
        if current.next is None:
            return None
        return self.get(current.next)

    def can_ascend_to(self, target_class: PlayerClass, honor: float, rice_per_second: float) -> bool:
        requirement = self.get(target_class)
        if requirement is None:
            return False
        return (
            honor >= requirement.honor_required
            and rice_per_second >= requirement.minimum_production_rate
        )

    def total_multiplier(self, current: PlayerClass, kind: MultiplierKind) -> float:
        """Product of a multiplier over rungs 1..current (Slave contributes nothing)."""
        total = 1.0
        for rung in PlayerClass:
            if rung == PlayerClass.SLAVE or rung > current:
                continue
            requirement = self.get(rung)
            if requirement is not None:
                total *= requirement.multiplier(kind)
        return total

    def __iter__(self):
        return iter(sorted(self._requirements.values(), key=lambda r: r.target_class))

    def __len__(self) -> int:
        return len(self._requirements)


DEFAULT_CLASS_TABLE = ClassProgressionTable([
    ClassRequirement(
        target_class=PlayerClass.TENANT_FARMER,
        honor_required=100,
        minimum_production_rate=0,
        name="소작농 (Tenant Farmer)",
        description="You have earned enough honor to escape slavery and work the land.",
        unlocked_features=("Basic Farm Tools", "Small Rice Field"),
        rice_multiplier=1.5,
        honor_multiplier=1.0,
        tap_multiplier=2.0,
    ),
    ClassRequirement(
        target_class=PlayerClass.COMMONER,
        honor_required=1_000,
        minimum_production_rate=10,
        name="평민 (Commoner)",
        description="You are now a free citizen with your own modest home.",
        unlocked_features=("Personal House", "Market Access", "Honor Buildings"),
        rice_multiplier=2.0,
        honor_multiplier=1.5,
        tap_multiplier=5.0,
    ),
    ClassRequirement(
        target_class=PlayerClass.NOBLE,
        honor_required=10_000,
        minimum_production_rate=100,
        name="양반 (Noble)",
        description="Your honor has elevated you to the noble class.",
        unlocked_features=("Silk Robes", "Servants", "Scholar's Hall"),
        rice_multiplier=3.0,
        honor_multiplier=2.0,
        tap_multiplier=10.0,
    ),
    ClassRequirement(
        target_class=PlayerClass.LORD,
        honor_required=100_000,
        minimum_production_rate=1_000,
        name="영주 (Lord)",
        description="You now rule over vast territories measured in Koku.",
        unlocked_features=("Territory Map", "Koku System", "Army Units"),
        rice_multiplier=5.0,
        honor_multiplier=3.0,
        tap_multiplier=25.0,
    ),
    ClassRequirement(
        target_class=PlayerClass.KING,
        honor_required=1_000_000,
        minimum_production_rate=10_000,
        name="왕 (King)",
        description="You have ascended to the throne and rule the entire kingdom.",
        unlocked_features=("Royal Palace", "Dragon Robe", "Kingdom Management"),
        rice_multiplier=10.0,
        honor_multiplier=5.0,
        tap_multiplier=100.0,
    ),
])


def format_duration(seconds: float) -> str:
    """Compact duration: 42s, 3m 5s, 2h 10m, 1d 4h."""
    seconds = int(max(0, seconds))
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    if seconds < 86400:
        return f"{seconds // 3600}h {(seconds % 3600) // 60}m"
    return f"{seconds // 86400}d {(seconds % 86400) // 3600}h"


class AscensionSystem:
    """
    Evaluates and performs class ascension.

    Ascension is atomic: either honor is spent and the class goes up by
    exactly one, or nothing changes.
    """

    def __init__(self, engine: "PlayerProgressionEngine", table: ClassProgressionTable = DEFAULT_CLASS_TABLE):
        self.engine = engine
        self.table = table
        self._was_available = False

    def next_requirement(self) -> ClassRequirement | None:
        return self.table.next_requirement(self.engine.player_class)

    def can_ascend(self) -> bool:
        current = self.engine.player_class
        if current.next is None:
            return False
        return self.table.can_ascend_to(current.next, self.engine.honor, self.engine.rice_per_second)

    def ascend(self) -> PlayerClass:
        """
        Spend honor and move up one class.

        Returns the new class. Raises AlreadyAtMaxClassError or
        RequirementsNotMetError with no state change.
        """
        old = self.engine.player_class
        if old.next is None:
            raise AlreadyAtMaxClassError()

        requirement = self.table.get(old.next)
        if requirement is None or not self.can_ascend():
            raise RequirementsNotMetError(
                honor=self.engine.honor,
                honor_required=requirement.honor_required if requirement else float("inf"),
                rice_per_second=self.engine.rice_per_second,
                rate_required=requirement.minimum_production_rate if requirement else float("inf"),
            )

        if requirement.honor_required > 0:
            if not self.engine.ledger.debit(ResourceKind.HONOR, requirement.honor_required):
                raise RequirementsNotMetError(
                    honor=self.engine.honor,
                    honor_required=requirement.honor_required,
                    rice_per_second=self.engine.rice_per_second,
                    rate_required=requirement.minimum_production_rate,
                )

        new = old.next
        self.engine.player_class = new
        self._was_available = False
        self.engine.bus.emit(ClassChanged(old=old, new=new))

        logger.info(f"Ascended from {old.label} to {new.label}")
        return new

    def try_ascend(self) -> bool:
        """Boolean form of ascend()."""
        try:
            self.ascend()
        except (AlreadyAtMaxClassError, RequirementsNotMetError) as e:
            logger.debug(f"Ascension rejected: {e}")
            return False
        return True

    def check_availability(self) -> bool:
        """
        Emit AscensionAvailable when ascension becomes possible.

        Fires once per transition, not on every check.
        """
        available = self.can_ascend()
        if available and not self._was_available:
            requirement = self.next_requirement()
            self.engine.bus.emit(AscensionAvailable(
                target_class=requirement.target_class,
                honor_required=requirement.honor_required,
            ))
        self._was_available = available
        return available

    def reset_availability(self) -> None:
        self._was_available = False

    def total_multiplier(self, kind: MultiplierKind, player_class: PlayerClass | None = None) -> float:
        if player_class is None:
            player_class = self.engine.player_class
        return self.table.total_multiplier(player_class, kind)

    def progress_to_next_class(self) -> float:
        """Honor progress toward the next rung, 0..1. 1.0 at King."""
        requirement = self.next_requirement()
        if requirement is None:
            return 1.0
        if requirement.honor_required <= 0:
            return 1.0
        return min(1.0, self.engine.honor / requirement.honor_required)

    def time_to_next_class(self) -> float | None:
        """
        Seconds of honor production until the next rung's honor cost.

        None when there is no next rung or honor isn't being produced.
        """
        requirement = self.next_requirement()
        if requirement is None:
            return None
        needed = max(0.0, requirement.honor_required - self.engine.honor)
        if needed == 0:
            return 0.0
        if self.engine.honor_per_second <= 0:
            return None
        return needed / self.engine.honor_per_second

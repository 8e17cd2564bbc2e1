"""
Upgrade system for Royal Road.

Upgrades are bought with rice and come in two kinds:
- Tap upgrades raise rice per tap
- Production upgrades raise rice per second

Cost grows geometrically per level. Effect grows per level too, and a
level's effect stacks on top of every earlier level's effect.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field

from ..errors import (
    InsufficientFundsError,
    MaxLevelReachedError,
    UnknownUpgradeError,
    UpgradeLockedError,
)
from ..state.event_bus import UpgradePurchased
from ..state.schema import PlayerClass, RateKind, ResourceKind, UpgradeKind

if TYPE_CHECKING:
    from ..state.engine import PlayerProgressionEngine

logger = logging.getLogger(__name__)


# Every player starts with this much rice per tap before upgrades
BASE_RICE_PER_TAP = 1.0


class UpgradeDefinition(BaseModel):
    """Static definition of a purchasable upgrade."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    kind: UpgradeKind

    base_cost: float = Field(gt=0)
    cost_growth: float = Field(default=1.15, gt=1)     # Cost +15% per level
    max_level: int = Field(default=100, ge=1)

    base_effect: float = Field(ge=0)                   # Rice per tap or per second
    effect_growth: float = Field(default=1.1, gt=0)    # Effect +10% per level

    # Unlock requirements
    required_class: PlayerClass = PlayerClass.SLAVE
    required_production_rate: float = 0.0
    prerequisite_ids: frozenset[str] = frozenset()     # Each must be level >= 1

    def cost_for_level(self, level: int) -> float:
        """Cost to go from level-1 to level. Level 0 costs base_cost."""
        if level <= 0:
            return self.base_cost
        return self.base_cost * self.cost_growth ** level

    def effect_for_level(self, level: int) -> float:
        """Effect added by this single level."""
        if level <= 0:
            return 0.0
        return self.base_effect * self.effect_growth ** (level - 1)

    def total_effect_for_level(self, level: int) -> float:
        """Cumulative effect of levels 1..level."""
        return sum(self.effect_for_level(i) for i in range(1, level + 1))

    def unmet_requirements(
        self,
        player_class: PlayerClass,
        rice_per_second: float,
        get_level: Callable[[str], int],
    ) -> list[str]:
        """Human-readable list of what's still missing. Empty = unlocked."""
        unmet = []
        if player_class < self.required_class:
            unmet.append(f"requires {self.required_class.label}")
        if rice_per_second < self.required_production_rate:
            unmet.append(f"requires {self.required_production_rate:g} rice/s")
        for prerequisite in sorted(self.prerequisite_ids):
            if get_level(prerequisite) <= 0:
                unmet.append(f"requires {prerequisite}")
        return unmet

    def is_unlocked(
        self,
        player_class: PlayerClass,
        rice_per_second: float,
        get_level: Callable[[str], int],
    ) -> bool:
        return not self.unmet_requirements(player_class, rice_per_second, get_level)


class UpgradeCatalog:
    """
    Immutable, ordered collection of upgrade definitions.

    Iteration order is declaration order: tap upgrades first, then
    production upgrades.
    """

    def __init__(
        self,
        tap_upgrades: Iterable[UpgradeDefinition] = (),
        production_upgrades: Iterable[UpgradeDefinition] = (),
    ):
        self._by_kind: dict[UpgradeKind, tuple[UpgradeDefinition, ...]] = {
            UpgradeKind.TAP: tuple(tap_upgrades),
            UpgradeKind.PRODUCTION: tuple(production_upgrades),
        }
        self._by_id: dict[str, UpgradeDefinition] = {}

        for kind, upgrades in self._by_kind.items():
            for upgrade in upgrades:
                if upgrade.kind != kind:
                    raise ValueError(f"{upgrade.id} is a {upgrade.kind.value} upgrade, listed as {kind.value}")
                if upgrade.id in self._by_id:
                    raise ValueError(f"Duplicate upgrade id: {upgrade.id}")
                self._by_id[upgrade.id] = upgrade

    def get(self, upgrade_id: str) -> UpgradeDefinition | None:
        return self._by_id.get(upgrade_id)

    def by_kind(self, kind: UpgradeKind) -> tuple[UpgradeDefinition, ...]:
        return self._by_kind[kind]

    def all(self) -> tuple[UpgradeDefinition, ...]:
        return self._by_kind[UpgradeKind.TAP] + self._by_kind[UpgradeKind.PRODUCTION]

    def __contains__(self, upgrade_id: object) -> bool:
        return upgrade_id in self._by_id

    def __iter__(self) -> Iterator[UpgradeDefinition]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._by_id)


# -----------------------------------------------------------------------------
# Default catalog
# -----------------------------------------------------------------------------

TAP_UPGRADES: tuple[UpgradeDefinition, ...] = (
    UpgradeDefinition(
        id="sharp_sickle",
        name="Sharpened Sickle",
        description="A keener edge cuts more stalks per swing.",
        kind=UpgradeKind.TAP,
        base_cost=10,
        base_effect=1,
    ),
    UpgradeDefinition(
        id="straw_sandals",
        name="Straw Sandals",
        description="Sure footing in the wet paddy.",
        kind=UpgradeKind.TAP,
        base_cost=100,
        base_effect=4,
        prerequisite_ids=frozenset({"sharp_sickle"}),
    ),
    UpgradeDefinition(
        id="ox_plow",
        name="Ox and Plow",
        description="Borrowed from the landlord, for a price.",
        kind=UpgradeKind.TAP,
        base_cost=1_100,
        base_effect=20,
        required_class=PlayerClass.TENANT_FARMER,
    ),
    UpgradeDefinition(
        id="iron_tools",
        name="Iron Tools",
        description="Forged by the village smith.",
        kind=UpgradeKind.TAP,
        base_cost=12_000,
        base_effect=100,
        required_class=PlayerClass.COMMONER,
        prerequisite_ids=frozenset({"ox_plow"}),
    ),
)

PRODUCTION_UPGRADES: tuple[UpgradeDefinition, ...] = (
    UpgradeDefinition(
        id="rice_paddy",
        name="Small Rice Paddy",
        description="A corner of land that grows on its own.",
        kind=UpgradeKind.PRODUCTION,
        base_cost=15,
        base_effect=0.1,
    ),
    UpgradeDefinition(
        id="irrigation_ditch",
        name="Irrigation Ditch",
        description="Water flows to the paddies without carrying buckets.",
        kind=UpgradeKind.PRODUCTION,
        base_cost=100,
        base_effect=1,
        prerequisite_ids=frozenset({"rice_paddy"}),
    ),
    UpgradeDefinition(
        id="hired_hands",
        name="Hired Hands",
        description="Neighbours work your field for a share.",
        kind=UpgradeKind.PRODUCTION,
        base_cost=1_100,
        base_effect=8,
        required_class=PlayerClass.TENANT_FARMER,
    ),
    UpgradeDefinition(
        id="granary",
        name="Granary",
        description="Stored rice no longer rots.",
        kind=UpgradeKind.PRODUCTION,
        base_cost=12_000,
        base_effect=47,
        required_class=PlayerClass.COMMONER,
        required_production_rate=10,
    ),
    UpgradeDefinition(
        id="water_mill",
        name="Water Mill",
        description="The river husks your rice.",
        kind=UpgradeKind.PRODUCTION,
        base_cost=130_000,
        base_effect=260,
        required_class=PlayerClass.NOBLE,
        prerequisite_ids=frozenset({"granary"}),
    ),
    UpgradeDefinition(
        id="estate",
        name="Estate",
        description="Tenant villages pay their tax in rice.",
        kind=UpgradeKind.PRODUCTION,
        base_cost=1_400_000,
        base_effect=1_400,
        required_class=PlayerClass.LORD,
        required_production_rate=1_000,
    ),
)

DEFAULT_CATALOG = UpgradeCatalog(TAP_UPGRADES, PRODUCTION_UPGRADES)


# Which rate each upgrade kind drives
_KIND_RATES: dict[UpgradeKind, RateKind] = {
    UpgradeKind.TAP: RateKind.RICE_PER_TAP,
    UpgradeKind.PRODUCTION: RateKind.RICE_PER_SECOND,
}


class UpgradeSystem:
    """
    Processes upgrade purchases against the engine's ledger.

    Purchases either fully succeed (debit, level up, stats recomputed,
    notification) or raise before anything is touched.
    """

    def __init__(self, engine: "PlayerProgressionEngine", catalog: UpgradeCatalog = DEFAULT_CATALOG):
        self.engine = engine
        self.catalog = catalog

    @property
    def _progress(self):
        return self.engine.upgrades

    def get_level(self, upgrade_id: str) -> int:
        return self._progress.get_level(upgrade_id)

    def next_cost(self, upgrade_id: str) -> float | None:
        """Cost of the next level, or None if unknown or maxed."""
        upgrade = self.catalog.get(upgrade_id)
        if upgrade is None:
            return None
        level = self.get_level(upgrade_id)
        if level >= upgrade.max_level:
            return None
        return upgrade.cost_for_level(level + 1)

    def is_unlocked(self, upgrade: UpgradeDefinition) -> bool:
        return upgrade.is_unlocked(
            self.engine.player_class,
            self.engine.rice_per_second,
            self.get_level,
        )

    def purchase(self, upgrade_id: str) -> int:
        """
        Buy the next level of an upgrade.

        Returns the new level. Raises UnknownUpgradeError,
        MaxLevelReachedError, InsufficientFundsError or UpgradeLockedError
        with no state change.
        """
        upgrade = self.catalog.get(upgrade_id)
        if upgrade is None:
            raise UnknownUpgradeError(upgrade_id)

        level = self.get_level(upgrade_id)
        if level >= upgrade.max_level:
            raise MaxLevelReachedError(upgrade_id, upgrade.max_level)

        cost = upgrade.cost_for_level(level + 1)
        balance = self.engine.ledger.balance(ResourceKind.RICE)
        if not self.engine.ledger.can_afford(ResourceKind.RICE, cost):
            raise InsufficientFundsError(upgrade_id, cost, balance)

        unmet = upgrade.unmet_requirements(
            self.engine.player_class,
            self.engine.rice_per_second,
            self.get_level,
        )
        if unmet:
            raise UpgradeLockedError(upgrade_id, ", ".join(unmet))

        # Single-threaded: nothing can spend between the check and the debit
        if not self.engine.ledger.debit(ResourceKind.RICE, cost):
            raise InsufficientFundsError(upgrade_id, cost, balance)

        new_level = self._progress.increment(upgrade_id)
        self.recalculate(upgrade.kind)

        total_effect = upgrade.total_effect_for_level(new_level)
        self.engine.bus.emit(UpgradePurchased(
            upgrade_id=upgrade_id,
            level=new_level,
            cost=cost,
            total_effect=total_effect,
        ))

        logger.info(f"Purchased {upgrade.name} level {new_level} for {cost:.2f} rice")
        return new_level

    def list_available(self, kind: UpgradeKind | None = None) -> tuple[UpgradeDefinition, ...]:
        """Unlocked upgrades in catalog order, optionally one kind only."""
        upgrades = self.catalog.all() if kind is None else self.catalog.by_kind(kind)
        return tuple(u for u in upgrades if self.is_unlocked(u))

    def total_bonus(self, kind: UpgradeKind) -> float:
        """Sum of cumulative effects over every upgrade of a kind."""
        return sum(
            upgrade.total_effect_for_level(self.get_level(upgrade.id))
            for upgrade in self.catalog.by_kind(kind)
        )

    def recalculate(self, kind: UpgradeKind | None = None) -> None:
        """
        Recompute derived rates from scratch.

        Full resummation over the catalog rather than incremental adds,
        so repeated purchases can't accumulate float drift.
        """
        kinds = list(UpgradeKind) if kind is None else [kind]
        for k in kinds:
            bonus = self.total_bonus(k)
            if k == UpgradeKind.TAP:
                bonus += BASE_RICE_PER_TAP
            self.engine.set_rate(_KIND_RATES[k], bonus)

    def tracks_any(self, kind: UpgradeKind) -> bool:
        """True if saved progress holds a level for any upgrade of this kind."""
        return any(self._progress.has(u.id) for u in self.catalog.by_kind(kind))

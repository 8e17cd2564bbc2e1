"""
Honor system for Royal Road.

Honor is what ascension costs. It comes from two places:
- Buildings: pay rice once, gain honor per second for good
- Activities: pay rice, gain a lump of honor immediately

Buildings can be built repeatedly; each copy adds its full rate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from pydantic import BaseModel, ConfigDict, Field

from ..errors import InsufficientFundsError, UnknownUpgradeError
from ..state.event_bus import HonorActivityPerformed, HonorBuildingPurchased
from ..state.schema import RateKind, ResourceKind

if TYPE_CHECKING:
    from ..state.engine import PlayerProgressionEngine

logger = logging.getLogger(__name__)


class HonorBuilding(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    cost: float = Field(gt=0)
    honor_per_second: float = Field(ge=0)


class HonorActivity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    cost: float = Field(gt=0)
    honor_reward: float = Field(ge=0)


HONOR_BUILDINGS: tuple[HonorBuilding, ...] = (
    HonorBuilding(id="school", name="서당 (Village School)",
                  description="Teach scholars and earn honor.", cost=50, honor_per_second=0.5),
    HonorBuilding(id="shrine", name="사당 (Ancestral Shrine)",
                  description="Honor the ancestors.", cost=200, honor_per_second=2.0),
    HonorBuilding(id="library", name="도서관 (Library)",
                  description="Spread knowledge, accumulate honor.", cost=1_000, honor_per_second=8.0),
    HonorBuilding(id="academy", name="서원 (Confucian Academy)",
                  description="A seat of learning brings great honor.", cost=5_000, honor_per_second=25.0),
)

HONOR_ACTIVITIES: tuple[HonorActivity, ...] = (
    HonorActivity(id="banquet", name="연회 (Banquet)",
                  description="Invite the gentry to dine.", cost=100, honor_reward=20),
    HonorActivity(id="charity", name="자선 (Charity)",
                  description="Feed the poor.", cost=250, honor_reward=60),
    HonorActivity(id="festival", name="축제 (Festival)",
                  description="Sponsor the village festival.", cost=500, honor_reward=150),
)


class HonorSystem:
    """Buys honor buildings and performs honor activities with rice."""

    def __init__(
        self,
        engine: "PlayerProgressionEngine",
        buildings: Iterable[HonorBuilding] = HONOR_BUILDINGS,
        activities: Iterable[HonorActivity] = HONOR_ACTIVITIES,
    ):
        self.engine = engine
        self.buildings: dict[str, HonorBuilding] = {b.id: b for b in buildings}
        self.activities: dict[str, HonorActivity] = {a.id: a for a in activities}

    @property
    def _counts(self):
        return self.engine.honor_buildings

    def building_count(self, building_id: str) -> int:
        return self._counts.get_level(building_id)

    def build(self, building_id: str) -> int:
        """
        Build one more copy of a building.

        Returns the new count. Raises UnknownUpgradeError or
        InsufficientFundsError with no state change.
        """
        building = self.buildings.get(building_id)
        if building is None:
            raise UnknownUpgradeError(building_id)

        balance = self.engine.ledger.balance(ResourceKind.RICE)
        if not self.engine.ledger.debit(ResourceKind.RICE, building.cost):
            raise InsufficientFundsError(building_id, building.cost, balance)

        count = self._counts.increment(building_id)
        self.recalculate()

        self.engine.bus.emit(HonorBuildingPurchased(
            building_id=building_id,
            count=count,
            cost=building.cost,
            honor_per_second_added=building.honor_per_second,
        ))

        logger.info(f"Built {building.name} (x{count}): +{building.honor_per_second} honor/s")
        return count

    def perform_activity(self, activity_id: str) -> float:
        """
        Spend rice for an immediate honor reward.

        Returns the honor gained.
        """
        activity = self.activities.get(activity_id)
        if activity is None:
            raise UnknownUpgradeError(activity_id)

        balance = self.engine.ledger.balance(ResourceKind.RICE)
        if not self.engine.ledger.debit(ResourceKind.RICE, activity.cost):
            raise InsufficientFundsError(activity_id, activity.cost, balance)

        gained = self.engine.ledger.credit(ResourceKind.HONOR, activity.honor_reward)

        self.engine.bus.emit(HonorActivityPerformed(
            activity_id=activity_id,
            cost=activity.cost,
            honor_gained=gained,
        ))

        logger.info(f"Performed {activity.name}: +{gained:g} honor")
        return gained

    def honor_production(self) -> float:
        """Honor per second from all buildings."""
        return sum(
            building.honor_per_second * self.building_count(building.id)
            for building in self.buildings.values()
        )

    def recalculate(self) -> None:
        self.engine.set_rate(RateKind.HONOR_PER_SECOND, self.honor_production())

    def tracks_any(self) -> bool:
        return any(self._counts.has(building_id) for building_id in self.buildings)

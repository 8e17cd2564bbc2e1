"""
Player progression engine.

Owns the live game state for one session and is its only mutator.
The presentation layer reads published state and submits intents;
every change is announced on the engine's EventBus.

Handles:
- Taps and passive production (with a batched tick cadence)
- Upgrade purchases, honor buildings and activities
- Class ascension
- Save, load (with offline earnings) and reset
"""

import logging
import math
import random
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable

from ..config import DEFAULT_CONFIG, Config
from ..errors import InvalidAmountError, PurchaseError
from .event_bus import (
    EventBus,
    OfflineEarnings,
    ProductionChanged,
    ProgressReset,
    ResourceChanged,
    SaveCompleted,
    StateLoaded,
    TapPerformed,
)
from .ledger import ResourceLedger
from .schema import (
    MultiplierKind,
    PlayerClass,
    ProductionState,
    RateKind,
    ResourceKind,
    ResourceState,
    SaveSnapshot,
    UpgradeKind,
    UpgradeProgress,
    non_negative,
    utc_now,
)
from .store import JsonSaveStore, SaveStore

logger = logging.getLogger(__name__)


class PlayerProgressionEngine:
    """
    The stateful core of the game.

    One instance per session, constructed by the host and passed to
    whoever needs it. Intents run to completion one at a time; nothing
    here is thread-safe and nothing needs to be.

    Usage:
        engine = PlayerProgressionEngine("saves")
        engine.bus.on(EventType.RESOURCE_CHANGED, redraw)
        engine.start_session()

        engine.tap()
        engine.purchase_upgrade("sharp_sickle")
        engine.tick(0.1)     # call from the host loop
    """

    def __init__(
        self,
        store: SaveStore | Path | str = "saves",
        bus: EventBus | None = None,
        config: Config | None = None,
        catalog=None,
        class_table=None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize with a store.

        Args:
            store: SaveStore instance, or path for JsonSaveStore
            bus: EventBus to publish on (a private one is created if omitted)
            config: Overrides merged onto DEFAULT_CONFIG
            catalog: UpgradeCatalog (defaults to the built-in catalog)
            class_table: ClassProgressionTable (defaults to the built-in ladder)
            rng: Random source for the Slave-class tap gate
            clock: Returns the current time as an aware UTC datetime
        """
        if isinstance(store, (Path, str)):
            self.store: SaveStore = JsonSaveStore(store)
        else:
            self.store = store

        self.bus = bus or EventBus()
        self.config: Config = {**DEFAULT_CONFIG, **(config or {})}
        self.rng = rng or random.Random()
        self.clock = clock

        # Owned state
        self.resources = ResourceState()
        self.production = ProductionState()
        self._player_class = PlayerClass.SLAVE
        self.upgrades = UpgradeProgress()
        self.honor_buildings = UpgradeProgress()
        self.play_time_seconds = 0.0

        self.ledger = ResourceLedger(
            self.resources,
            self.bus,
            epsilon=self.config["change_epsilon"],
            cap=self.config["max_resource"],
        )

        # Host-loop timers (seconds accumulated since last fire)
        self._production_timer = 0.0
        self._ascension_timer = 0.0
        self._autosave_timer = 0.0

        # Game systems (lazily initialized)
        self._catalog = catalog
        self._class_table = class_table
        self._upgrade_system = None
        self._ascension_system = None
        self._honor_system = None

    # -------------------------------------------------------------------------
    # Systems
    # -------------------------------------------------------------------------

    @property
    def upgrade_system(self):
        """Get the upgrade system (lazy initialization)."""
        if self._upgrade_system is None:
            from ..systems.upgrades import DEFAULT_CATALOG, UpgradeSystem
            catalog = DEFAULT_CATALOG if self._catalog is None else self._catalog
            self._upgrade_system = UpgradeSystem(self, catalog)
        return self._upgrade_system

    @property
    def ascension(self):
        """Get the ascension system (lazy initialization)."""
        if self._ascension_system is None:
            from ..systems.classes import DEFAULT_CLASS_TABLE, AscensionSystem
            table = DEFAULT_CLASS_TABLE if self._class_table is None else self._class_table
            self._ascension_system = AscensionSystem(self, table)
        return self._ascension_system

    @property
    def honor_system(self):
        """Get the honor system (lazy initialization)."""
        if self._honor_system is None:
            from ..systems.honor import HonorSystem
            self._honor_system = HonorSystem(self)
        return self._honor_system

    # -------------------------------------------------------------------------
    # Published state
    # -------------------------------------------------------------------------

    @property
    def player_class(self) -> PlayerClass:
        return self._player_class

    @player_class.setter
    def player_class(self, value: PlayerClass) -> None:
        self._player_class = PlayerClass(value)

    @property
    def rice(self) -> float:
        return self.resources.rice

    @property
    def honor(self) -> float:
        return self.resources.honor

    @property
    def koku(self) -> float:
        return self.resources.koku

    @property
    def total_rice_earned(self) -> float:
        return self.resources.total_rice_earned

    @property
    def total_honor_earned(self) -> float:
        return self.resources.total_honor_earned

    @property
    def rice_per_second(self) -> float:
        return self.production.rice_per_second

    @property
    def honor_per_second(self) -> float:
        return self.production.honor_per_second

    @property
    def rice_per_tap(self) -> float:
        return self.production.rice_per_tap

    @property
    def tap_count(self) -> int:
        return self.production.tap_count

    def set_rate(self, kind: RateKind, value: float) -> float:
        """
        Set a production rate, capped at max_production_rate.

        Notifies only when the rate moved by at least the change epsilon.
        """
        value = min(non_negative(value), self.config["max_production_rate"])
        old = self.production.rate(kind)
        self.production.set_rate(kind, value)
        if abs(value - old) >= self.ledger.epsilon:
            self.bus.emit(ProductionChanged(rate=kind, old=old, new=value))
        return value

    # -------------------------------------------------------------------------
    # Taps and production
    # -------------------------------------------------------------------------

    def perform_tap(self) -> float:
        """
        Tap for rice.

        A Slave only gets the opportunity with probability
        tap_opportunity_chance; a missed tap changes nothing.
        Returns the rice earned.
        """
        if self._player_class == PlayerClass.SLAVE:
            if self.rng.random() >= self.config["tap_opportunity_chance"]:
                logger.debug("Tap dropped: no opportunity")
                return 0.0

        total_taps = self.production.increment_taps()
        earned = self.ledger.credit(ResourceKind.RICE, self.production.rice_per_tap)
        self.bus.emit(TapPerformed(rice_earned=earned, total_taps=total_taps))
        return earned

    tap = perform_tap

    def advance_production(self, elapsed_seconds: float) -> tuple[float, float]:
        """
        Credit passive production for a span of time.

        Negative spans are treated as zero. Returns (rice, honor) credited.
        """
        if not math.isfinite(elapsed_seconds):
            raise InvalidAmountError(elapsed_seconds, "elapsed seconds")
        elapsed = max(0.0, elapsed_seconds)

        rice = honor = 0.0
        if elapsed > 0 and self.rice_per_second > 0:
            rice = self.ledger.credit(ResourceKind.RICE, self._earned(self.rice_per_second, elapsed))
        if elapsed > 0 and self.honor_per_second > 0:
            honor = self.ledger.credit(ResourceKind.HONOR, self._earned(self.honor_per_second, elapsed))
        return rice, honor

    def _earned(self, rate: float, elapsed: float) -> float:
        # rate * elapsed may overflow for long spans; the ledger caps anyway
        amount = rate * elapsed
        if not math.isfinite(amount):
            return self.ledger.cap
        return min(amount, self.ledger.cap)

    def tick(self, elapsed_seconds: float) -> None:
        """
        Advance host time.

        Elapsed time is batched: production is credited once per
        production_interval, ascension availability is checked once per
        ascension_check_interval and the game autosaves once per
        autosave_interval.
        """
        if not math.isfinite(elapsed_seconds):
            raise InvalidAmountError(elapsed_seconds, "elapsed seconds")
        elapsed = max(0.0, elapsed_seconds)
        self.play_time_seconds = min(self.play_time_seconds + elapsed, sys.float_info.max)

        self._production_timer += elapsed
        if self._production_timer >= self.config["production_interval"]:
            pending, self._production_timer = self._production_timer, 0.0
            self.advance_production(pending)

        self._ascension_timer += elapsed
        if self._ascension_timer >= self.config["ascension_check_interval"]:
            self.ascension.check_availability()
            self._ascension_timer = 0.0

        self._autosave_timer += elapsed
        if self._autosave_timer >= self.config["autosave_interval"]:
            self.request_save()

    # -------------------------------------------------------------------------
    # Upgrades and honor
    # -------------------------------------------------------------------------

    def purchase_upgrade(self, upgrade_id: str) -> int:
        """Buy the next level of an upgrade. Returns the new level."""
        try:
            return self.upgrade_system.purchase(upgrade_id)
        except PurchaseError as e:
            logger.debug(f"Purchase rejected: {e}")
            raise

    def list_available_upgrades(self, kind: UpgradeKind | None = None):
        return self.upgrade_system.list_available(kind)

    def build_honor_building(self, building_id: str) -> int:
        try:
            return self.honor_system.build(building_id)
        except PurchaseError as e:
            logger.debug(f"Build rejected: {e}")
            raise

    def perform_honor_activity(self, activity_id: str) -> float:
        try:
            return self.honor_system.perform_activity(activity_id)
        except PurchaseError as e:
            logger.debug(f"Activity rejected: {e}")
            raise

    # -------------------------------------------------------------------------
    # Ascension
    # -------------------------------------------------------------------------

    def can_ascend(self) -> bool:
        return self.ascension.can_ascend()

    def try_ascend(self) -> bool:
        return self.ascension.try_ascend()

    def ascend(self) -> PlayerClass:
        return self.ascension.ascend()

    def total_multiplier(self, kind: MultiplierKind, player_class: PlayerClass | None = None) -> float:
        return self.ascension.total_multiplier(kind, player_class)

    def next_class_requirement(self):
        return self.ascension.next_requirement()

    def progress_to_next_class(self) -> float:
        return self.ascension.progress_to_next_class()

    def time_to_next_class(self) -> float | None:
        return self.ascension.time_to_next_class()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def snapshot(self) -> SaveSnapshot:
        """Deep copy of live state, stamped with the current time."""
        return SaveSnapshot(
            resource_state=self.resources.model_copy(deep=True),
            production_state=self.production.model_copy(deep=True),
            player_class=self._player_class,
            upgrade_progress=self.upgrades.model_copy(deep=True),
            honor_buildings=self.honor_buildings.model_copy(deep=True),
            save_timestamp=self.clock(),
            total_play_time_seconds=int(self.play_time_seconds),
        )

    def request_save(self) -> bool:
        """Persist a snapshot. Result is also published as SaveCompleted."""
        self._autosave_timer = 0.0
        success = self.store.save(self.snapshot())
        message = "Game saved" if success else "Save failed"
        self.bus.emit(SaveCompleted(success=success, message=message))
        return success

    def request_load(self, snapshot: SaveSnapshot) -> None:
        """
        Replace live state with a snapshot.

        Out-of-range values are clamped, offline earnings are credited
        using the snapshot's own rates, then derived rates are recomputed
        from whatever upgrade and building ids the tables still know.
        """
        from ..systems.validation import sanitize_snapshot

        snapshot = snapshot.model_copy(deep=True)
        sanitize_snapshot(
            snapshot,
            max_resource=self.config["max_resource"],
            max_rate=self.config["max_production_rate"],
        )

        self.resources = snapshot.resource_state
        self.ledger.bind(self.resources)
        self.production = snapshot.production_state
        self._player_class = snapshot.player_class
        self.upgrades = snapshot.upgrade_progress
        self.honor_buildings = snapshot.honor_buildings
        self.play_time_seconds = float(snapshot.total_play_time_seconds)
        self._reset_timers()
        self.ascension.reset_availability()

        self.reconcile_offline(snapshot.last_save_timestamp)
        self._recompute_stats()

        self.bus.emit(StateLoaded(
            player_class=self._player_class,
            rice=self.rice,
            honor=self.honor,
        ))

    def reconcile_offline(self, last_save: datetime) -> tuple[float, float]:
        """
        Credit production for the gap since last_save.

        A last_save in the future (clock rollback) credits nothing.
        Returns (rice, honor) credited.
        """
        elapsed = max(0.0, (self.clock() - last_save).total_seconds())
        rice, honor = self.advance_production(elapsed)

        if rice > 0 or honor > 0:
            self.bus.emit(OfflineEarnings(rice=rice, honor=honor, seconds=elapsed))
            logger.info(f"Offline for {elapsed:.0f}s: +{rice:.1f} rice, +{honor:.1f} honor")

        return rice, honor

    def _recompute_stats(self) -> None:
        for kind in UpgradeKind:
            if self.upgrade_system.tracks_any(kind):
                self.upgrade_system.recalculate(kind)
        if self.honor_system.tracks_any():
            self.honor_system.recalculate()

    def start_session(self) -> bool:
        """
        Load the stored save if there is one.

        Returns True if a save was loaded, False for a fresh start.
        """
        snapshot = self.store.load()
        if snapshot is None:
            logger.info("No save found, starting fresh")
            return False

        self.request_load(snapshot)
        logger.info(f"Session resumed as {self._player_class.label}")
        return True

    def reset_progress(self, delete_save: bool = True) -> None:
        """Throw away all progress, optionally deleting the save files."""
        old_resources = self.resources
        old_production = self.production

        self.resources = ResourceState()
        self.ledger.bind(self.resources)
        self.production = ProductionState()
        self._player_class = PlayerClass.SLAVE
        self.upgrades = UpgradeProgress()
        self.honor_buildings = UpgradeProgress()
        self.play_time_seconds = 0.0
        self._reset_timers()
        self.ascension.reset_availability()

        deleted = self.store.delete() if delete_save else False
        self.bus.emit(ProgressReset(save_deleted=deleted))

        # Let subscribers redraw from the zeroed state
        for kind in ResourceKind:
            old = old_resources.balance(kind)
            if old != 0:
                self.bus.emit(ResourceChanged(resource=kind, old=old, new=0.0))
        for kind in RateKind:
            old = old_production.rate(kind)
            new = self.production.rate(kind)
            if old != new:
                self.bus.emit(ProductionChanged(rate=kind, old=old, new=new))

        logger.info(f"Progress reset (save deleted: {deleted})")

    def _reset_timers(self) -> None:
        self._production_timer = 0.0
        self._ascension_timer = 0.0
        self._autosave_timer = 0.0

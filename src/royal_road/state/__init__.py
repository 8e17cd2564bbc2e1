"""State management for Royal Road sessions."""

from .schema import (
    SAVE_VERSION,
    MultiplierKind,
    PlayerClass,
    ProductionState,
    RateKind,
    ResourceKind,
    ResourceState,
    SaveSnapshot,
    UpgradeKind,
    UpgradeProgress,
)
from .event_bus import (
    AscensionAvailable,
    ClassChanged,
    EventBus,
    EventType,
    GameEvent,
    HonorActivityPerformed,
    HonorBuildingPurchased,
    Notification,
    OfflineEarnings,
    ProductionChanged,
    ProgressReset,
    ResourceChanged,
    SaveCompleted,
    StateLoaded,
    TapPerformed,
    UpgradePurchased,
)
from .ledger import ResourceLedger
from .store import JsonSaveStore, MemorySaveStore, SaveStore
from .engine import PlayerProgressionEngine

__all__ = [
    # Schema
    "SAVE_VERSION",
    "MultiplierKind",
    "PlayerClass",
    "ProductionState",
    "RateKind",
    "ResourceKind",
    "ResourceState",
    "SaveSnapshot",
    "UpgradeKind",
    "UpgradeProgress",
    # Events
    "EventBus",
    "EventType",
    "GameEvent",
    "Notification",
    "ResourceChanged",
    "ProductionChanged",
    "TapPerformed",
    "ClassChanged",
    "AscensionAvailable",
    "UpgradePurchased",
    "HonorBuildingPurchased",
    "HonorActivityPerformed",
    "OfflineEarnings",
    "StateLoaded",
    "ProgressReset",
    "SaveCompleted",
    # Ledger
    "ResourceLedger",
    # Store
    "SaveStore",
    "JsonSaveStore",
    "MemorySaveStore",
    # Engine
    "PlayerProgressionEngine",
]

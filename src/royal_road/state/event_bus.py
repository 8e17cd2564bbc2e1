"""
Event bus for Royal Road state changes.

Provides decoupled communication between the engine and the presentation
layer. The engine is the only publisher; the UI subscribes and redraws.

Usage:
    from .event_bus import EventBus, EventType

    bus = EventBus()
    bus.on(EventType.RESOURCE_CHANGED, my_handler)

    # Emit (in the engine when state changes)
    bus.emit(ResourceChanged(resource=ResourceKind.RICE, old=10.0, new=11.0))

    # Handler receives the typed notification
    def my_handler(event: ResourceChanged):
        print(f"{event.resource.value}: {event.old} -> {event.new}")

There is no global instance: construct one bus per engine and pass it to
whoever needs to subscribe.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, ClassVar, Union

from .schema import PlayerClass, RateKind, ResourceKind, utc_now

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Notifications the engine publishes."""

    # Resource events
    RESOURCE_CHANGED = "resource.changed"
    PRODUCTION_CHANGED = "production.changed"
    TAP_PERFORMED = "tap.performed"

    # Progression events
    CLASS_CHANGED = "class.changed"
    ASCENSION_AVAILABLE = "class.ascension_available"
    UPGRADE_PURCHASED = "upgrade.purchased"
    HONOR_BUILDING_PURCHASED = "honor.building_purchased"
    HONOR_ACTIVITY_PERFORMED = "honor.activity_performed"

    # Session events
    OFFLINE_EARNINGS = "session.offline_earnings"
    STATE_LOADED = "session.loaded"
    PROGRESS_RESET = "session.reset"
    SAVE_COMPLETED = "session.saved"


@dataclass(frozen=True)
class GameEvent:
    """Base payload. `type` is fixed per subclass."""
    type: ClassVar[EventType]
    timestamp: datetime = field(default_factory=utc_now, kw_only=True)

    def __str__(self) -> str:
        return f"[{self.type.value}]"


@dataclass(frozen=True)
class ResourceChanged(GameEvent):
    type: ClassVar[EventType] = EventType.RESOURCE_CHANGED
    resource: ResourceKind
    old: float
    new: float


@dataclass(frozen=True)
class ProductionChanged(GameEvent):
    type: ClassVar[EventType] = EventType.PRODUCTION_CHANGED
    rate: RateKind
    old: float
    new: float


@dataclass(frozen=True)
class TapPerformed(GameEvent):
    type: ClassVar[EventType] = EventType.TAP_PERFORMED
    rice_earned: float
    total_taps: int


@dataclass(frozen=True)
class ClassChanged(GameEvent):
    type: ClassVar[EventType] = EventType.CLASS_CHANGED
    old: PlayerClass
    new: PlayerClass


@dataclass(frozen=True)
class AscensionAvailable(GameEvent):
    type: ClassVar[EventType] = EventType.ASCENSION_AVAILABLE
    target_class: PlayerClass
    honor_required: float


@dataclass(frozen=True)
class UpgradePurchased(GameEvent):
    type: ClassVar[EventType] = EventType.UPGRADE_PURCHASED
    upgrade_id: str
    level: int
    cost: float
    total_effect: float


@dataclass(frozen=True)
class HonorBuildingPurchased(GameEvent):
    type: ClassVar[EventType] = EventType.HONOR_BUILDING_PURCHASED
    building_id: str
    count: int
    cost: float
    honor_per_second_added: float


@dataclass(frozen=True)
class HonorActivityPerformed(GameEvent):
    type: ClassVar[EventType] = EventType.HONOR_ACTIVITY_PERFORMED
    activity_id: str
    cost: float
    honor_gained: float


@dataclass(frozen=True)
class OfflineEarnings(GameEvent):
    type: ClassVar[EventType] = EventType.OFFLINE_EARNINGS
    rice: float
    honor: float
    seconds: float


@dataclass(frozen=True)
class StateLoaded(GameEvent):
    type: ClassVar[EventType] = EventType.STATE_LOADED
    player_class: PlayerClass
    rice: float
    honor: float


@dataclass(frozen=True)
class ProgressReset(GameEvent):
    type: ClassVar[EventType] = EventType.PROGRESS_RESET
    save_deleted: bool


@dataclass(frozen=True)
class SaveCompleted(GameEvent):
    type: ClassVar[EventType] = EventType.SAVE_COMPLETED
    success: bool
    message: str = ""


# Closed set of notifications the engine can emit
Notification = Union[
    ResourceChanged,
    ProductionChanged,
    TapPerformed,
    ClassChanged,
    AscensionAvailable,
    UpgradePurchased,
    HonorBuildingPurchased,
    HonorActivityPerformed,
    OfflineEarnings,
    StateLoaded,
    ProgressReset,
    SaveCompleted,
]

# Type alias for event handlers
EventHandler = Callable[[Notification], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(), in subscription order,
    with specific-type listeners before catch-all listeners. A listener
    that raises is logged and skipped; delivery continues.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._any_listeners: list[EventHandler] = []
        self._history: list[Notification] = []
        self._history_limit = history_limit  # Keep last N events for debugging

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to one notification type."""
        handlers = self._listeners.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from one notification type."""
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def on_any(self, handler: EventHandler) -> None:
        """Subscribe to every notification."""
        if handler not in self._any_listeners:
            self._any_listeners.append(handler)

    def off_any(self, handler: EventHandler) -> None:
        if handler in self._any_listeners:
            self._any_listeners.remove(handler)

    def emit(self, event: Notification) -> Notification:
        """
        Deliver a notification to all current subscribers.

        Returns the event (for chaining/testing).
        """
        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit:]

        # Copy so handlers may unsubscribe during dispatch
        handlers = list(self._listeners.get(event.type, [])) + list(self._any_listeners)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in handler for {event.type.value}")

        return event

    def clear(self) -> None:
        """Remove all listeners. Useful for testing."""
        self._listeners.clear()
        self._any_listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[Notification]:
        """Recent notifications, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))

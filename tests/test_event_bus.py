"""Tests for the notification bus."""

import dataclasses
from datetime import timedelta

import pytest

from royal_road.state.event_bus import (
    ClassChanged,
    EventBus,
    EventType,
    ResourceChanged,
    SaveCompleted,
)
from royal_road.state.schema import PlayerClass, ResourceKind


def rice_changed(old=0.0, new=1.0):
    return ResourceChanged(resource=ResourceKind.RICE, old=old, new=new)


class TestSubscription:
    """Test on/off and dispatch."""

    def test_handler_receives_event(self, bus):
        received = []
        bus.on(EventType.RESOURCE_CHANGED, received.append)

        event = bus.emit(rice_changed())

        assert received == [event]
        assert received[0].new == 1.0

    def test_handler_only_sees_its_type(self, bus):
        received = []
        bus.on(EventType.CLASS_CHANGED, received.append)

        bus.emit(rice_changed())

        assert received == []

    def test_off_unsubscribes(self, bus):
        received = []
        bus.on(EventType.RESOURCE_CHANGED, received.append)
        bus.off(EventType.RESOURCE_CHANGED, received.append)

        bus.emit(rice_changed())

        assert received == []
        assert bus.listener_count(EventType.RESOURCE_CHANGED) == 0

    def test_duplicate_subscription_ignored(self, bus):
        received = []
        bus.on(EventType.RESOURCE_CHANGED, received.append)
        bus.on(EventType.RESOURCE_CHANGED, received.append)

        bus.emit(rice_changed())

        assert len(received) == 1

    def test_specific_before_catch_all(self, bus):
        order = []
        bus.on_any(lambda e: order.append("any"))
        bus.on(EventType.RESOURCE_CHANGED, lambda e: order.append("specific"))

        bus.emit(rice_changed())

        assert order == ["specific", "any"]

    def test_delivery_in_emit_order(self, bus, events):
        bus.emit(rice_changed(0, 1))
        bus.emit(ClassChanged(old=PlayerClass.SLAVE, new=PlayerClass.TENANT_FARMER))
        bus.emit(rice_changed(1, 2))

        assert [e.type for e in events] == [
            EventType.RESOURCE_CHANGED,
            EventType.CLASS_CHANGED,
            EventType.RESOURCE_CHANGED,
        ]

    def test_handler_may_unsubscribe_during_dispatch(self, bus):
        received = []

        def once(event):
            received.append(event)
            bus.off(EventType.RESOURCE_CHANGED, once)

        bus.on(EventType.RESOURCE_CHANGED, once)
        bus.emit(rice_changed())
        bus.emit(rice_changed())

        assert len(received) == 1

    def test_off_any_unsubscribes(self, bus):
        received = []
        bus.on_any(received.append)
        bus.off_any(received.append)

        bus.emit(rice_changed())

        assert received == []

    def test_off_any_unknown_handler_ignored(self, bus):
        bus.off_any(print)
        bus.emit(rice_changed())

    def test_clear(self, bus):
        bus.on(EventType.RESOURCE_CHANGED, lambda e: None)
        bus.clear()
        assert bus.listener_count(EventType.RESOURCE_CHANGED) == 0


class TestHandlerIsolation:
    """A failing handler must not stop delivery."""

    def test_later_handlers_still_called(self, bus, caplog):
        received = []

        def boom(event):
            raise RuntimeError("listener bug")

        bus.on(EventType.SAVE_COMPLETED, boom)
        bus.on(EventType.SAVE_COMPLETED, received.append)

        bus.emit(SaveCompleted(success=True))

        assert len(received) == 1
        assert "Error in handler" in caplog.text


class TestHistory:
    """Test the debugging history buffer."""

    def test_history_limited(self):
        bus = EventBus(history_limit=3)
        for i in range(5):
            bus.emit(rice_changed(i, i + 1))

        history = bus.get_history()
        assert len(history) == 3
        assert history[0].old == 2

    def test_history_filter(self, bus):
        bus.emit(rice_changed())
        bus.emit(SaveCompleted(success=False, message="disk full"))

        saves = bus.get_history(EventType.SAVE_COMPLETED)
        assert len(saves) == 1
        assert saves[0].message == "disk full"


class TestNotifications:
    """Test notification payloads."""

    def test_type_fixed_per_class(self):
        assert rice_changed().type == EventType.RESOURCE_CHANGED
        assert SaveCompleted(success=True).type == EventType.SAVE_COMPLETED

    def test_payloads_are_frozen(self):
        event = rice_changed()
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.new = 5.0

    def test_timestamp_is_utc(self):
        stamp = rice_changed().timestamp
        assert stamp.tzinfo is not None
        assert stamp.utcoffset() == timedelta(0)

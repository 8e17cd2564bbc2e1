"""Tests for the command loop and rendering helpers."""

import io

import pytest
from rich.console import Console

from royal_road.interface import cli, renderer
from royal_road.interface.cli import main, run_command
from royal_road.interface.renderer import describe_event, format_number
from royal_road.state.event_bus import (
    ClassChanged,
    OfflineEarnings,
    SaveCompleted,
    TapPerformed,
    UpgradePurchased,
)
from royal_road.state.schema import PlayerClass, RateKind, ResourceKind
from royal_road.state.store import JsonSaveStore


@pytest.fixture
def out():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture(autouse=True)
def quiet_console(monkeypatch):
    """Send shared-console output to a buffer."""
    monkeypatch.setattr(renderer.console, "file", io.StringIO())


class TestRunCommand:
    """Test command dispatch."""

    def test_blank_line(self, engine, out):
        assert run_command(engine, "   ", out)

    def test_tap(self, engine, out):
        assert run_command(engine, "tap", out)
        assert engine.rice == 1.0

    def test_tap_many(self, engine, out):
        run_command(engine, "tap 5", out)
        assert engine.tap_count == 5

    def test_buy(self, rich_engine, out):
        run_command(rich_engine, "buy sharp_sickle", out)
        assert rich_engine.upgrades.get_level("sharp_sickle") == 1

    def test_rejected_purchase_is_reported(self, engine, out):
        assert run_command(engine, "buy sharp_sickle", out)
        assert "Cannot afford" in out.file.getvalue()
        assert engine.upgrades.get_level("sharp_sickle") == 0

    def test_missing_argument(self, engine, out):
        run_command(engine, "buy", out)
        assert "Usage" in out.file.getvalue()

    def test_build_and_activity(self, rich_engine, out):
        run_command(rich_engine, "build school", out)
        run_command(rich_engine, "activity banquet", out)
        assert rich_engine.honor_buildings.get_level("school") == 1
        assert rich_engine.honor == 10_020

    def test_ascend(self, rich_engine, out):
        run_command(rich_engine, "ascend", out)
        assert rich_engine.player_class == PlayerClass.TENANT_FARMER

    def test_wait(self, engine, out):
        engine.set_rate(RateKind.RICE_PER_SECOND, 2)
        run_command(engine, "wait 10", out)
        assert engine.rice == 20

    def test_very_long_wait(self, engine, out):
        engine.set_rate(RateKind.RICE_PER_SECOND, 1e12)

        assert run_command(engine, "wait 1e300", out)
        assert run_command(engine, "wait 1", out)

        assert engine.rice == engine.ledger.cap
        assert "Time passes" in out.file.getvalue()

    def test_bad_number(self, engine, out):
        assert run_command(engine, "wait soon", out)
        assert "Expected a number" in out.file.getvalue()

    @pytest.mark.parametrize("view", ["status", "upgrades", "honor", "classes", "help"])
    def test_views(self, rich_engine, out, view):
        assert run_command(rich_engine, view, out)

    def test_save(self, engine, memory_store, out):
        run_command(engine, "save", out)
        assert memory_store.exists()

    def test_reset(self, engine, out):
        engine.tap()
        run_command(engine, "reset", out)
        assert engine.rice == 0

    def test_unknown(self, engine, out):
        assert run_command(engine, "dance", out)
        assert "Unknown command" in out.file.getvalue()

    def test_quit(self, engine, out):
        assert not run_command(engine, "quit", out)


class TestMain:
    """Test the entry point end to end."""

    def test_session_saves_on_exit(self, tmp_path, monkeypatch):
        lines = iter(["tap", "quit"])
        monkeypatch.setattr(cli.console, "input", lambda prompt="": next(lines))

        assert main(["--save-dir", str(tmp_path), "--chance", "1"]) == 0

        snapshot = JsonSaveStore(tmp_path).load()
        assert snapshot.production_state.tap_count == 1

    def test_eof_exits(self, tmp_path, monkeypatch):
        def eof(prompt=""):
            raise EOFError

        monkeypatch.setattr(cli.console, "input", eof)

        assert main(["--save-dir", str(tmp_path)]) == 0
        assert JsonSaveStore(tmp_path).exists()


class TestRendering:
    """Test formatting helpers."""

    @pytest.mark.parametrize("value,expected", [
        (950, "950"),
        (12.5, "12.5"),
        (1_500, "1.50K"),
        (2_000_000, "2.00M"),
    ])
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    def test_describe_class_change(self):
        event = ClassChanged(old=PlayerClass.SLAVE, new=PlayerClass.TENANT_FARMER)
        assert describe_event(event) == "Ascended: Slave -> Tenant Farmer"

    def test_describe_purchase(self):
        event = UpgradePurchased(upgrade_id="granary", level=2, cost=1_500, total_effect=3)
        assert describe_event(event) == "Bought granary level 2 for 1.50K rice"

    def test_describe_offline(self):
        event = OfflineEarnings(rice=50, honor=0, seconds=185)
        assert describe_event(event) == "While you were away (3m 5s): +50 rice, +0 honor"

    def test_chatty_events_silent(self):
        assert describe_event(TapPerformed(rice_earned=1, total_taps=1)) is None
        assert describe_event(SaveCompleted(success=True)) is None

    def test_failed_save_described(self):
        assert describe_event(SaveCompleted(success=False, message="Save failed")) == "Save failed"

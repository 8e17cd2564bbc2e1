"""
Command-line interface for Royal Road.

Main entry point and game loop. The loop is the engine's host: it
measures wall-clock time between commands and feeds it to engine.tick(),
so production, ascension checks and autosave keep running.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from rich.console import Console

from ..config import load_config, set_tap_opportunity_chance
from ..errors import RoyalRoadError
from ..state import PlayerProgressionEngine
from .renderer import (
    THEME,
    console,
    format_number,
    render_event,
    show_banner,
    show_classes,
    show_help,
    show_honor,
    show_status,
    show_upgrades,
)

logger = logging.getLogger(__name__)

# Upper bound for "tap n" so a typo can't hang the loop
MAX_TAPS_PER_COMMAND = 1000


def _require_arg(args: list[str], usage: str, out: Console) -> str | None:
    if not args:
        out.print(f"[{THEME['warning']}]Usage: {usage}[/{THEME['warning']}]")
        return None
    return args[0]


def run_command(engine: PlayerProgressionEngine, line: str, out: Console = console) -> bool:
    """
    Execute one command line against the engine.

    Returns False when the loop should exit.
    """
    parts = line.strip().split()
    if not parts:
        return True

    command, args = parts[0].lower(), parts[1:]

    try:
        if command in ("tap", "t"):
            count = int(args[0]) if args else 1
            count = max(1, min(count, MAX_TAPS_PER_COMMAND))
            earned = sum(engine.tap() for _ in range(count))
            if earned > 0:
                out.print(f"[{THEME['primary']}]+{format_number(earned)} rice[/{THEME['primary']}]")
            else:
                out.print(f"[{THEME['dim']}]The overseer is watching. No rice this time.[/{THEME['dim']}]")

        elif command == "buy":
            upgrade_id = _require_arg(args, "buy <upgrade>", out)
            if upgrade_id:
                engine.purchase_upgrade(upgrade_id)

        elif command == "build":
            building_id = _require_arg(args, "build <building>", out)
            if building_id:
                engine.build_honor_building(building_id)

        elif command == "activity":
            activity_id = _require_arg(args, "activity <activity>", out)
            if activity_id:
                engine.perform_honor_activity(activity_id)

        elif command == "ascend":
            engine.ascend()

        elif command == "wait":
            seconds = float(args[0]) if args else 1.0
            engine.tick(seconds)
            out.print(f"[{THEME['dim']}]Time passes...[/{THEME['dim']}]")

        elif command == "status":
            show_status(engine)
        elif command == "upgrades":
            show_upgrades(engine)
        elif command == "honor":
            show_honor(engine)
        elif command == "classes":
            show_classes(engine)

        elif command == "save":
            if engine.request_save():
                out.print(f"[{THEME['accent']}]Saved.[/{THEME['accent']}]")

        elif command == "reset":
            engine.reset_progress(delete_save=True)

        elif command in ("help", "?"):
            show_help()

        elif command in ("quit", "exit", "q"):
            return False

        else:
            out.print(f"[{THEME['warning']}]Unknown command: {command}[/{THEME['warning']}] (try help)")

    except RoyalRoadError as e:
        out.print(f"[{THEME['warning']}]{e}[/{THEME['warning']}]")
    except ValueError:
        out.print(f"[{THEME['warning']}]Expected a number: {' '.join(args)}[/{THEME['warning']}]")

    return True


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Royal Road - from the paddy to the throne")
    parser.add_argument(
        "--save-dir",
        default="saves",
        help="Directory for save and config files",
    )
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Ignore the existing save and start over (the save is overwritten on next save)",
    )
    parser.add_argument(
        "--chance",
        type=float,
        help="Set and remember the Slave-class tap chance (0-1)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    save_dir = Path(args.save_dir)
    if args.chance is not None:
        set_tap_opportunity_chance(args.chance, save_dir)
    config = load_config(save_dir)

    engine = PlayerProgressionEngine(save_dir, config=config)
    engine.bus.on_any(render_event)

    show_banner()
    if not args.fresh:
        engine.start_session()
    show_status(engine)

    last = time.monotonic()
    while True:
        try:
            line = console.input(f"[{THEME['primary']}]>[/{THEME['primary']}] ")
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        now = time.monotonic()
        engine.tick(now - last)
        last = now

        if not run_command(engine, line):
            break

    engine.request_save()
    engine.bus.off_any(render_event)
    logger.info("Session ended")
    return 0


if __name__ == "__main__":
    sys.exit(main())

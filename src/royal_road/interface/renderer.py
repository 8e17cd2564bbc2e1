"""
Display and rendering helpers for the Royal Road CLI.

Handles theming, status displays, and turning engine notifications
into one-line messages.
"""

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from ..state.event_bus import (
    AscensionAvailable,
    ClassChanged,
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
from ..systems.classes import format_duration


# Shared console instance
console = Console()

# -----------------------------------------------------------------------------
# Theme: paddy field at dusk
# -----------------------------------------------------------------------------

THEME = {
    "primary": "gold3",             # ripe rice
    "secondary": "wheat1",          # straw
    "honor": "medium_purple",       # court robes
    "warning": "dark_orange",
    "danger": "red3",
    "accent": "green3",             # new growth
    "dim": "dim",
    "text": "grey85",
}

# Number suffixes for large amounts
_SUFFIXES = ("", "K", "M", "B", "T", "Q")


def format_number(value: float) -> str:
    """Compact number: 950, 1.25K, 3.40M, ..."""
    if value < 1000:
        return f"{value:.1f}" if value % 1 else f"{value:.0f}"
    tier = 0
    while value >= 1000 and tier < len(_SUFFIXES) - 1:
        value /= 1000
        tier += 1
    return f"{value:.2f}{_SUFFIXES[tier]}"


def progress_bar(fraction: float, width: int = 20) -> str:
    fraction = max(0.0, min(1.0, fraction))
    filled = round(fraction * width)
    return "█" * filled + "░" * (width - filled)


def show_banner():
    console.print(f"[bold {THEME['primary']}]ROYAL ROAD[/bold {THEME['primary']}] "
                  f"[{THEME['dim']}]from the paddy to the throne[/{THEME['dim']}]")
    console.print(f"[{THEME['dim']}]Type help for commands.[/{THEME['dim']}]\n")


def show_status(engine):
    """Show balances, rates and class progress."""
    table = Table(
        title=f"[bold {THEME['primary']}]{engine.player_class.label}[/bold {THEME['primary']}]",
        show_header=False,
        box=None,
    )
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])

    table.add_row("Rice", f"{format_number(engine.rice)} (+{format_number(engine.rice_per_second)}/s)")
    table.add_row("Honor", f"{format_number(engine.honor)} (+{format_number(engine.honor_per_second)}/s)")
    if engine.koku > 0:
        table.add_row("Koku", format_number(engine.koku))
    table.add_row("Rice per tap", format_number(engine.rice_per_tap))
    table.add_row("Taps", f"{engine.tap_count:,}")
    table.add_row("Play time", format_duration(engine.play_time_seconds))

    console.print(table)

    requirement = engine.next_class_requirement()
    if requirement is None:
        console.print(f"\n[bold {THEME['honor']}]You rule the kingdom.[/bold {THEME['honor']}]")
        return

    progress = engine.progress_to_next_class()
    eta = engine.time_to_next_class()
    eta_text = format_duration(eta) if eta is not None else "--"
    color = THEME["accent"] if engine.can_ascend() else THEME["honor"]
    console.print()
    console.print(
        f"[{THEME['dim']}]Next:[/{THEME['dim']}] {requirement.name} "
        f"[{color}]{progress_bar(progress)} {progress:.0%}[/{color}] "
        f"[{THEME['dim']}]eta {eta_text}[/{THEME['dim']}]"
    )


def show_upgrades(engine):
    """Show the upgrade catalog with levels, costs and lock reasons."""
    system = engine.upgrade_system
    table = Table(title=f"[bold {THEME['primary']}]Upgrades[/bold {THEME['primary']}]")
    table.add_column("ID", style=THEME["secondary"])
    table.add_column("Name")
    table.add_column("Kind", style=THEME["dim"])
    table.add_column("Level", justify="right")
    table.add_column("Next cost", justify="right")
    table.add_column("Status", style=THEME["dim"])

    for upgrade in system.catalog:
        level = system.get_level(upgrade.id)
        cost = system.next_cost(upgrade.id)
        unmet = upgrade.unmet_requirements(engine.player_class, engine.rice_per_second, system.get_level)
        if cost is None:
            status = "max"
        elif unmet:
            status = ", ".join(unmet)
        elif cost <= engine.rice:
            status = f"[{THEME['accent']}]ready[/{THEME['accent']}]"
        else:
            status = ""
        table.add_row(
            upgrade.id,
            upgrade.name,
            upgrade.kind.value,
            str(level),
            format_number(cost) if cost is not None else "-",
            status,
        )

    console.print(table)


def show_honor(engine):
    """Show honor buildings and activities."""
    system = engine.honor_system
    table = Table(title=f"[bold {THEME['honor']}]Honor[/bold {THEME['honor']}]")
    table.add_column("ID", style=THEME["secondary"])
    table.add_column("Name")
    table.add_column("Cost", justify="right")
    table.add_column("Yield", justify="right")
    table.add_column("Owned", justify="right", style=THEME["dim"])

    for building in system.buildings.values():
        table.add_row(
            building.id,
            building.name,
            format_number(building.cost),
            f"+{building.honor_per_second:g}/s",
            str(system.building_count(building.id)),
        )
    for activity in system.activities.values():
        table.add_row(
            activity.id,
            activity.name,
            format_number(activity.cost),
            f"+{activity.honor_reward:g}",
            "",
        )

    console.print(table)


def show_classes(engine):
    """Show the class ladder."""
    table = Table(title=f"[bold {THEME['honor']}]Royal Road[/bold {THEME['honor']}]")
    table.add_column("Class")
    table.add_column("Honor", justify="right")
    table.add_column("Rice/s", justify="right")
    table.add_column("Multipliers (rice/honor/tap)", style=THEME["dim"])

    for requirement in engine.ascension.table:
        reached = requirement.target_class <= engine.player_class
        style = THEME["accent"] if reached else THEME["text"]
        table.add_row(
            f"[{style}]{requirement.name}[/{style}]",
            format_number(requirement.honor_required),
            format_number(requirement.minimum_production_rate),
            f"x{requirement.rice_multiplier:g} / x{requirement.honor_multiplier:g} / x{requirement.tap_multiplier:g}",
        )

    console.print(table)


def show_help():
    help_text = """
**Actions**
- `tap [n]` - work the paddy (n times)
- `buy <upgrade>` - buy the next level of an upgrade
- `build <building>` - build an honor building
- `activity <activity>` - perform an honor activity
- `ascend` - spend honor to rise one class
- `wait <seconds>` - let time pass

**Views**
- `status`, `upgrades`, `honor`, `classes`

**Session**
- `save` - save now
- `reset` - erase all progress and the save file
- `quit` - save and exit
"""
    console.print(Markdown(help_text))


def describe_event(event: Notification) -> str | None:
    """One-line description of a notification, or None if it isn't worth printing."""
    match event:
        case TapPerformed() | ResourceChanged() | ProductionChanged():
            return None
        case UpgradePurchased(upgrade_id=upgrade_id, level=level, cost=cost):
            return f"Bought {upgrade_id} level {level} for {format_number(cost)} rice"
        case HonorBuildingPurchased(building_id=building_id, count=count):
            return f"Built {building_id} (x{count})"
        case HonorActivityPerformed(activity_id=activity_id, honor_gained=gained):
            return f"{activity_id}: +{format_number(gained)} honor"
        case ClassChanged(old=old, new=new):
            return f"Ascended: {old.label} -> {new.label}"
        case AscensionAvailable(target_class=target):
            return f"You may now ascend to {target.label}"
        case OfflineEarnings(rice=rice, honor=honor, seconds=seconds):
            return (f"While you were away ({format_duration(seconds)}): "
                    f"+{format_number(rice)} rice, +{format_number(honor)} honor")
        case StateLoaded(player_class=player_class):
            return f"Welcome back, {player_class.label}"
        case ProgressReset(save_deleted=deleted):
            return "Progress reset" + (" and save deleted" if deleted else "")
        case SaveCompleted(success=success, message=message):
            return message if not success else None
        case _:
            return None


def render_event(event: Notification):
    """Bus subscriber: print notable notifications."""
    text = describe_event(event)
    if text:
        console.print(f"[{THEME['dim']}]*[/{THEME['dim']}] {text}")

"""
User configuration persistence.

Stores tuning knobs like tick cadence and the Slave-class tap chance in a
JSON file next to the save data.
"""

import json
import logging
import math
from pathlib import Path
from typing import TypedDict

logger = logging.getLogger(__name__)


class Config(TypedDict, total=False):
    """User configuration."""
    tap_opportunity_chance: float  # Slave-class tap success probability
    production_interval: float  # Seconds between production ticks
    autosave_interval: float  # Seconds between autosaves
    ascension_check_interval: float  # Seconds between ascension availability checks
    change_epsilon: float  # Minimum delta that triggers a change notification
    max_resource: float  # Balance cap
    max_production_rate: float  # Per-second rate cap


DEFAULT_CONFIG: Config = {
    "tap_opportunity_chance": 0.3,
    "production_interval": 0.1,
    "autosave_interval": 30.0,
    "ascension_check_interval": 1.0,
    "change_epsilon": 1e-3,
    "max_resource": 1e15,  # Quadrillion
    "max_production_rate": 1e12,  # Trillion per second
}


def get_config_path(save_dir: Path | str = "saves") -> Path:
    """Get path to config file."""
    return Path(save_dir) / ".royal_road_config.json"


def load_config(save_dir: Path | str = "saves") -> Config:
    """Load config from file, or return defaults if not found."""
    path = get_config_path(save_dir)

    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        # Merge with defaults to handle missing keys
        config = DEFAULT_CONFIG.copy()
        for key, value in saved.items():
            if key not in DEFAULT_CONFIG:
                continue
            number = _as_number(value)
            if number is None:
                logger.warning(f"Ignoring invalid config value {key}={value!r}")
                continue
            config[key] = number
        return config
    except (json.JSONDecodeError, AttributeError, IOError):
        return DEFAULT_CONFIG.copy()


def _as_number(value: object) -> float | None:
    # bool is an int subclass but never a valid setting
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def save_config(config: Config, save_dir: Path | str = "saves") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(save_dir)

    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError:
        return False


def set_tap_opportunity_chance(chance: float, save_dir: Path | str = "saves") -> None:
    """Save the Slave-class tap chance, clamped to [0, 1]."""
    config = load_config(save_dir)
    config["tap_opportunity_chance"] = max(0.0, min(1.0, chance))
    save_config(config, save_dir)


def set_autosave_interval(seconds: float, save_dir: Path | str = "saves") -> None:
    """Save autosave cadence."""
    config = load_config(save_dir)
    config["autosave_interval"] = max(1.0, seconds)
    save_config(config, save_dir)

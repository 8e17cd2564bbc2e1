"""
Game systems for Royal Road.

Each system holds a reference to the engine and works on its state:
spending goes through the engine's ledger, rate changes through
engine.set_rate, and notifications through engine.bus.
"""

from .upgrades import (
    DEFAULT_CATALOG,
    UpgradeCatalog,
    UpgradeDefinition,
    UpgradeSystem,
)
from .classes import (
    DEFAULT_CLASS_TABLE,
    AscensionSystem,
    ClassProgressionTable,
    ClassRequirement,
    format_duration,
)
from .honor import HONOR_ACTIVITIES, HONOR_BUILDINGS, HonorActivity, HonorBuilding, HonorSystem
from .validation import (
    clamp_amount,
    sanitize_snapshot,
    validate_production_rate,
    validate_resource_amount,
)

__all__ = [
    "UpgradeDefinition",
    "UpgradeCatalog",
    "UpgradeSystem",
    "DEFAULT_CATALOG",
    "ClassRequirement",
    "ClassProgressionTable",
    "AscensionSystem",
    "DEFAULT_CLASS_TABLE",
    "format_duration",
    "HonorBuilding",
    "HonorActivity",
    "HonorSystem",
    "HONOR_BUILDINGS",
    "HONOR_ACTIVITIES",
    # Boundary checks
    "validate_resource_amount",
    "validate_production_rate",
    "clamp_amount",
    "sanitize_snapshot",
]

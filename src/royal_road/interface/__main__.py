"""
Run the Royal Road CLI.

Usage:
    python -m royal_road.interface [--save-dir saves]
"""

import sys

from .cli import main

sys.exit(main())

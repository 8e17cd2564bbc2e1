"""Royal Road Clicker - idle progression engine."""

__version__ = "0.1.0"

"""Terminal host for the Royal Road engine."""

"""HTTP adapter over the forum services."""

"""Runtime flag sources (maintenance mode and similar switches)."""

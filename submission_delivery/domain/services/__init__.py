"""Domain services (pure, no I/O)."""

"""Application bootstrap: dependency wiring, database, logging."""

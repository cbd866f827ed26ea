"""Background workers and error classification."""

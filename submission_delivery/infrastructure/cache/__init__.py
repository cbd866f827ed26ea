"""In-memory cache implementations."""

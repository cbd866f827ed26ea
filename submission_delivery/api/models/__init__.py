"""Request/response models for the API."""

"""Health check response model."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    environment: str
    open_circuits: list[str]

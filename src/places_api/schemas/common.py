"""Common Pydantic v2 schemas shared across the API."""

from datetime import datetime

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error message")
    code: str | None = Field(default=None, description="Machine-readable error code")


class HealthResponse(BaseModel):
    """Liveness probe body."""

    ok: bool = True
    version: str
    timestamp: datetime

"""Health check response models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

HealthStatus = Literal["healthy", "unhealthy"]


class HealthResponse(BaseModel):
    """Overall status plus per-component status."""

    status: HealthStatus
    version: str
    services: dict[str, HealthStatus]
    timestamp: datetime

"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the JSON health endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    version: str = Field(description="Exporter version")
    collector: Literal["running", "stopped", "failed"] = Field(
        description="Background collection state; informational only, does not affect status",
    )

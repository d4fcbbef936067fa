"""Pydantic schemas for the rate limit introspection endpoint."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class IdentityUsageResponse(BaseModel):
    """Current window usage of one identity."""

    model_config = ConfigDict(from_attributes=True)

    identity: str
    request_count: int = Field(
        ..., description="Admitted requests still inside the window."
    )
    remaining: int = Field(..., description="Requests left before rejection.")
    last_request: int = Field(
        ..., description="Epoch milliseconds of the last admitted request."
    )
    requests: List[int] = Field(
        default_factory=list,
        description="Epoch milliseconds of every admitted request in the window.",
    )
    is_limited: bool = Field(
        ..., description="True when the next request would be rejected."
    )


class RateLimitReport(BaseModel):
    """Snapshot of the limiter configuration and tracked identities."""

    limit: int
    window_ms: int
    tracked_identities: int
    identities: List[IdentityUsageResponse] = Field(default_factory=list)

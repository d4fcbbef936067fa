"""Pydantic schemas for the demonstration endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class WelcomeResponse(BaseModel):
    message: str
    user_id: str | None = Field(
        default=None,
        description="Identity the request was accounted against.",
    )
    timestamp: datetime


class SampleData(BaseModel):
    random: float = Field(..., description="Random number in [0, 1).")
    timestamp: datetime


class SampleResponse(BaseModel):
    message: str
    data: SampleData


class DataResponse(BaseModel):
    """Echo of a submitted JSON payload."""

    message: str
    received: Any = Field(
        default_factory=dict,
        description="Parsed request body ({} when the body is empty).",
    )
    timestamp: datetime


class StatusResponse(BaseModel):
    status: str
    server: str
    version: str
    timestamp: datetime

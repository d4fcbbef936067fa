"""Demonstration endpoints used to exercise the rate limiter.

All of them sit behind the rate limit middleware; none has side effects.
"""

from __future__ import annotations

import json
import math
import random
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from throttle_api.core.config import APP_VERSION
from throttle_api.core.errors import INVALID_JSON, ValidationAppError
from throttle_api.schemas.demo import (
    DataResponse,
    SampleData,
    SampleResponse,
    StatusResponse,
    WelcomeResponse,
)

router = APIRouter(tags=["Demo"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/", response_model=WelcomeResponse)
async def welcome(request: Request) -> WelcomeResponse:
    """Greet the caller with the identity its quota is tracked under."""
    return WelcomeResponse(
        message="Welcome to the Rate Limited API!",
        user_id=getattr(request.state, "user_id", None),
        timestamp=_now(),
    )


@router.get("/api/test", response_model=SampleResponse)
async def sample() -> SampleResponse:
    return SampleResponse(
        message="This is a test endpoint",
        data=SampleData(random=random.random(), timestamp=_now()),
    )


@router.post("/api/data", response_model=DataResponse)
async def submit_data(request: Request) -> DataResponse:
    """Echo a JSON payload back to the caller.

    The body is parsed by hand so that malformed JSON maps to a 400
    ``invalid_json`` error instead of a generic validation error.
    Bodies sent with another content type are ignored, as are
    empty ones; both echo an empty object.

    Raises:
        ValidationAppError: If the body is not valid JSON.
    """
    raw = await request.body()
    if not raw.strip() or not _is_json(request.headers.get("content-type")):
        return DataResponse(message="Data received", received={}, timestamp=_now())

    try:
        payload = json.loads(
            raw, parse_constant=_reject_constant, parse_float=_finite_float
        )
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise ValidationAppError(
            code=INVALID_JSON,
            message="Request body is not valid JSON.",
            details={"hint": "Send a UTF-8 encoded JSON document."},
        ) from exc

    return DataResponse(message="Data received", received=payload, timestamp=_now())


@router.get("/api/status", response_model=StatusResponse)
async def service_status() -> StatusResponse:
    return StatusResponse(
        status="OK",
        server="Throttle API",
        version=APP_VERSION,
        timestamp=_now(),
    )


def _is_json(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() == "application/json"


def _reject_constant(name: str) -> float:
    # NaN, Infinity and -Infinity are Python extensions, not JSON
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value

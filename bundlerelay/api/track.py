"""Device event ingestion."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session

from bundlerelay.api.deps import get_db
from bundlerelay.schemas.bundle import SuccessResponse
from bundlerelay.schemas.device_event import DeviceEventCreate
from bundlerelay.services.device_events import track_device_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=SuccessResponse)
def api_track_event(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    """Record a PROMOTED or RECOVERED report. Invalid bodies are a 400, not a 422."""
    try:
        event = DeviceEventCreate.model_validate(payload)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        logger.info("Rejected device event: invalid %s", ", ".join(fields))
        raise HTTPException(status_code=400, detail=f"Invalid event: {', '.join(fields)}")
    track_device_event(db, event)
    return SuccessResponse()

"""Bundle management API routes (X-Admin-Token)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from bundlerelay.api.deps import get_db, require_admin_token
from bundlerelay.schemas.bundle import (
    BundleCreate,
    BundleListResponse,
    BundleRead,
    BundleUpdate,
    ChannelsResponse,
    SuccessResponse,
)
from bundlerelay.schemas.device_event import RolloutStats
from bundlerelay.services.bundle_repository import (
    DEFAULT_PAGE_LIMIT,
    BundleConflictError,
    delete_bundle,
    get_bundle_read,
    insert_bundles,
    list_bundles,
    list_channels,
    row_to_bundle_read,
    update_bundle,
)
from bundlerelay.services.device_events import get_rollout_stats

router = APIRouter(dependencies=[Depends(require_admin_token)])


@router.get("", response_model=BundleListResponse)
def api_list_bundles(
    channel: str | None = Query(None),
    platform: str | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> BundleListResponse:
    """List bundles, newest first."""
    data, pagination = list_bundles(db, channel=channel, platform=platform, limit=limit, offset=offset)
    return BundleListResponse(data=data, pagination=pagination)


@router.get("/channels", response_model=ChannelsResponse)
def api_list_channels(db: Session = Depends(get_db)) -> ChannelsResponse:
    return ChannelsResponse(channels=list_channels(db))


@router.get("/{bundle_id}", response_model=BundleRead)
def api_get_bundle(bundle_id: str, db: Session = Depends(get_db)) -> BundleRead:
    bundle = get_bundle_read(db, bundle_id)
    if bundle is None:
        raise HTTPException(status_code=404, detail="Bundle not found")
    return bundle


@router.post("", status_code=201, response_model=SuccessResponse)
def api_create_bundles(
    payload: BundleCreate | list[BundleCreate] = Body(...),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    """Insert one bundle or a list of bundles (all or nothing)."""
    items = payload if isinstance(payload, list) else [payload]
    try:
        insert_bundles(db, items)
    except BundleConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return SuccessResponse()


@router.patch("/{bundle_id}", response_model=BundleRead)
def api_update_bundle(
    bundle_id: str,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
) -> BundleRead:
    """Apply a partial update. Invalid or null-clearing bodies are a 400."""
    try:
        patch = BundleUpdate.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()}))
        raise HTTPException(status_code=400, detail=f"Invalid bundle update: {fields}")
    try:
        row = update_bundle(db, bundle_id, patch)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if row is None:
        raise HTTPException(status_code=404, detail="Bundle not found")
    return row_to_bundle_read(row)


@router.delete("/{bundle_id}", response_model=SuccessResponse)
def api_delete_bundle(bundle_id: str, db: Session = Depends(get_db)) -> SuccessResponse:
    if not delete_bundle(db, bundle_id):
        raise HTTPException(status_code=404, detail="Bundle not found")
    return SuccessResponse()


@router.get("/{bundle_id}/rollout-stats", response_model=RolloutStats)
def api_rollout_stats(bundle_id: str, db: Session = Depends(get_db)) -> RolloutStats:
    """Promotion/recovery counts over each device's latest event."""
    return get_rollout_stats(db, bundle_id)

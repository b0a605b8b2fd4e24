"""Update-check routes: path form (app-version / fingerprint) and header form."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from bundlerelay.api.deps import get_db, get_storage_registry
from bundlerelay.config import get_settings
from bundlerelay.errors import InputError
from bundlerelay.schemas.update_info import AppUpdateInfoResponse
from bundlerelay.services.resolution.candidates import UpdateRequest
from bundlerelay.services.resolution.constants import NIL_UUID
from bundlerelay.services.update_service import get_app_update_info
from bundlerelay.storage.registry import StorageRegistry

router = APIRouter()


def _check(
    db: Session, registry: StorageRegistry, request: UpdateRequest
) -> AppUpdateInfoResponse | None:
    return get_app_update_info(db, request, registry, get_settings().resolution_mode)


@router.get(
    "/app-version/{platform}/{app_version}/{channel}/{min_bundle_id}/{bundle_id}",
    response_model=AppUpdateInfoResponse | None,
)
@router.get(
    "/app-version/{platform}/{app_version}/{channel}/{min_bundle_id}/{bundle_id}/{device_id}",
    response_model=AppUpdateInfoResponse | None,
)
def check_update_by_app_version(
    platform: str,
    app_version: str,
    channel: str,
    min_bundle_id: str,
    bundle_id: str,
    device_id: str | None = None,
    db: Session = Depends(get_db),
    registry: StorageRegistry = Depends(get_storage_registry),
) -> AppUpdateInfoResponse | None:
    """Check for an update using the app-version strategy."""
    request = UpdateRequest(
        platform=platform,
        bundle_id=bundle_id,
        app_version=app_version,
        min_bundle_id=min_bundle_id,
        channel=channel,
        device_id=device_id,
    )
    return _check(db, registry, request)


@router.get(
    "/fingerprint/{platform}/{fingerprint_hash}/{channel}/{min_bundle_id}/{bundle_id}",
    response_model=AppUpdateInfoResponse | None,
)
@router.get(
    "/fingerprint/{platform}/{fingerprint_hash}/{channel}/{min_bundle_id}/{bundle_id}/{device_id}",
    response_model=AppUpdateInfoResponse | None,
)
def check_update_by_fingerprint(
    platform: str,
    fingerprint_hash: str,
    channel: str,
    min_bundle_id: str,
    bundle_id: str,
    device_id: str | None = None,
    db: Session = Depends(get_db),
    registry: StorageRegistry = Depends(get_storage_registry),
) -> AppUpdateInfoResponse | None:
    """Check for an update using the fingerprint strategy."""
    request = UpdateRequest(
        platform=platform,
        bundle_id=bundle_id,
        fingerprint_hash=fingerprint_hash,
        min_bundle_id=min_bundle_id,
        channel=channel,
        device_id=device_id,
    )
    return _check(db, registry, request)


@router.get("", response_model=AppUpdateInfoResponse | None)
def check_update_by_headers(
    x_app_platform: str | None = Header(None),
    x_bundle_id: str | None = Header(None),
    x_app_version: str | None = Header(None),
    x_fingerprint_hash: str | None = Header(None),
    x_channel: str | None = Header(None),
    x_min_bundle_id: str | None = Header(None),
    x_device_id: str | None = Header(None),
    db: Session = Depends(get_db),
    registry: StorageRegistry = Depends(get_storage_registry),
) -> AppUpdateInfoResponse | None:
    """Header form used by older clients. Fingerprint wins when both are sent."""
    if not x_app_version and not x_fingerprint_hash:
        raise InputError("Missing required headers (x-app-version or x-fingerprint-hash).")
    if not x_bundle_id or not x_app_platform:
        raise InputError("Missing required headers (x-app-platform, x-bundle-id).")
    request = UpdateRequest(
        platform=x_app_platform,
        bundle_id=x_bundle_id,
        app_version=None if x_fingerprint_hash else x_app_version,
        fingerprint_hash=x_fingerprint_hash or None,
        min_bundle_id=x_min_bundle_id or NIL_UUID,
        channel=x_channel or get_settings().default_channel,
        device_id=x_device_id,
    )
    return _check(db, registry, request)

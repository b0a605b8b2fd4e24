"""Update check orchestration: resolve, gate by rollout, attach a download URL."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from bundlerelay.schemas.update_info import AppUpdateInfoResponse
from bundlerelay.services.bundle_repository import list_candidate_bundles
from bundlerelay.services.resolution.candidates import UpdateRequest
from bundlerelay.services.resolution.constants import NIL_UUID
from bundlerelay.services.resolution.engine import UpdateInfo, resolve_update
from bundlerelay.services.resolution.rollout import apply_rollout_gate
from bundlerelay.services.resolution.sql import resolve_update_sql
from bundlerelay.storage.registry import StorageRegistry

logger = logging.getLogger(__name__)


def get_update_info(db: Session, request: UpdateRequest, mode: str = "sql") -> UpdateInfo | None:
    """Resolve in the datastore ("sql") or in-process ("memory"), then apply the rollout gate."""
    if mode == "memory":
        info = resolve_update(list_candidate_bundles(db, request), request)
    elif mode == "sql":
        info = resolve_update_sql(db, request)
    else:
        raise ValueError(f"Unknown resolution mode: {mode!r}")
    return apply_rollout_gate(info, request.device_id)


def get_app_update_info(
    db: Session,
    request: UpdateRequest,
    registry: StorageRegistry,
    mode: str = "sql",
) -> AppUpdateInfoResponse | None:
    """Wire response for a check-in, or None for "no change"."""
    info = get_update_info(db, request, mode)
    if info is None:
        return None
    file_url = None if info.id == NIL_UUID else registry.resolve_file_url(info.storage_uri)
    logger.info(
        "Check-in %s/%s bundle=%s device=%s -> %s %s",
        request.platform,
        request.channel,
        request.bundle_id,
        request.device_id or "-",
        info.status,
        info.id,
    )
    return AppUpdateInfoResponse(
        id=info.id,
        status=info.status,
        should_force_update=info.should_force_update,
        message=info.message,
        storage_uri=info.storage_uri,
        file_hash=info.file_hash,
        signature=info.signature,
        file_url=file_url,
    )

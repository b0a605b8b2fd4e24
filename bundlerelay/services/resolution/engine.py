"""Resolution decision engine: UPDATE, ROLLBACK or no change for one check-in.

Ids are UUIDv7 strings, so plain string comparison is creation order. The
SQL encodings in ``bundlerelay.services.resolution.sql`` must return the same
answer as ``resolve_update`` for every bundle set and request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from bundlerelay.services.resolution.candidates import UpdateRequest, filter_candidates
from bundlerelay.services.resolution.constants import NIL_UUID, ROLLOUT_FULL, UpdateStatus

logger = logging.getLogger(__name__)


@dataclass
class UpdateInfo:
    """Resolution result. Never persisted; None means "no change"."""

    id: str
    status: UpdateStatus
    should_force_update: bool
    message: str | None
    storage_uri: str | None
    file_hash: str | None
    signature: str | None = None
    # Rollout inputs for the chosen bundle; not part of the wire format
    rollout_percentage: int | None = field(default=ROLLOUT_FULL, repr=False)
    target_device_ids: list[str] | None = field(default=None, repr=False)


def init_bundle_rollback() -> UpdateInfo:
    """Revert to the bundle embedded in the native binary."""
    return UpdateInfo(
        id=NIL_UUID,
        status="ROLLBACK",
        should_force_update=True,
        message=None,
        storage_uri=None,
        file_hash=None,
    )


def make_update_info(bundle: Any, status: UpdateStatus) -> UpdateInfo:
    return UpdateInfo(
        id=bundle.id,
        status=status,
        # ROLLBACK is always forced
        should_force_update=True if status == "ROLLBACK" else bool(bundle.should_force_update),
        message=bundle.message,
        storage_uri=bundle.storage_uri,
        file_hash=bundle.file_hash,
        signature=bundle.signature,
        rollout_percentage=bundle.rollout_percentage,
        target_device_ids=bundle.target_device_ids,
    )


def decide(candidates: list[Any], request: UpdateRequest) -> UpdateInfo | None:
    """Pick UPDATE / ROLLBACK / None from already-filtered candidates.

    1. No candidates: None for fresh installs or ids at/below the floor, else revert to NIL.
    2. Fresh install (NIL): newest candidate.
    3. Current bundle still a candidate: newest candidate if newer, else None.
    4. Current bundle gone: newest candidate above it, else newest below it (forced).
    """
    bundle_id = request.bundle_id
    min_bundle_id = request.min_bundle_id

    # 1. Nothing eligible at all
    if not candidates:
        if bundle_id == NIL_UUID or bundle_id <= min_bundle_id:
            return None
        return init_bundle_rollback()

    latest = None
    current = None
    update_candidate = None
    rollback_candidate = None
    for b in candidates:
        if latest is None or b.id > latest.id:
            latest = b
        if b.id == bundle_id:
            current = b
        elif bundle_id != NIL_UUID:
            if b.id > bundle_id:
                if update_candidate is None or b.id > update_candidate.id:
                    update_candidate = b
            elif rollback_candidate is None or b.id > rollback_candidate.id:
                rollback_candidate = b

    # 2. Fresh install
    if bundle_id == NIL_UUID:
        if latest is not None and latest.id > bundle_id:
            return make_update_info(latest, "UPDATE")
        return None

    # 3. Device is on an eligible bundle
    if current is not None:
        if latest is not None and latest.id > current.id:
            return make_update_info(latest, "UPDATE")
        return None

    # 4. Device's bundle was disabled, moved or never matched
    if update_candidate is not None:
        return make_update_info(update_candidate, "UPDATE")
    if rollback_candidate is not None:
        return make_update_info(rollback_candidate, "ROLLBACK")

    if bundle_id <= min_bundle_id:
        return None
    return init_bundle_rollback()


def resolve_update(bundles: Iterable[Any], request: UpdateRequest) -> UpdateInfo | None:
    """Filter bundles for the request, then decide. No rollout gating."""
    candidates = filter_candidates(bundles, request)
    result = decide(candidates, request)
    logger.debug(
        "Resolved %s/%s bundle=%s candidates=%d -> %s",
        request.platform,
        request.channel,
        request.bundle_id,
        len(candidates),
        f"{result.status} {result.id}" if result else "no change",
    )
    return result

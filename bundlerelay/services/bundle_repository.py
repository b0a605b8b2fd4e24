"""Bundle repository: queries and writes against the bundles table."""

from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy.orm import Session

from bundlerelay.models import Bundle
from bundlerelay.schemas.bundle import BundleCreate, BundleRead, BundleUpdate, Pagination
from bundlerelay.services.resolution.candidates import UpdateRequest
from bundlerelay.services.resolution.semver import filter_compatible_app_versions

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50


class BundleConflictError(ValueError):
    """Raised when inserting a bundle whose id already exists."""

    pass


def row_to_bundle_read(row: Bundle) -> BundleRead:
    return BundleRead(
        id=row.id,
        platform=row.platform,
        channel=row.channel,
        target_app_version=row.target_app_version,
        fingerprint_hash=row.fingerprint_hash,
        enabled=row.enabled,
        should_force_update=row.should_force_update,
        rollout_percentage=row.rollout_percentage,
        target_device_ids=row.target_device_ids,
        storage_uri=row.storage_uri,
        file_hash=row.file_hash,
        signature=row.signature,
        message=row.message,
        git_commit_hash=row.git_commit_hash,
        metadata=row.bundle_metadata,
        created_at=row.created_at,
    )


def calculate_pagination(total: int, limit: int, offset: int) -> Pagination:
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return Pagination(
        total=total,
        limit=limit,
        offset=offset,
        has_next_page=offset + limit < total,
        has_previous_page=offset > 0,
        current_page=(offset // limit) + 1 if limit > 0 else 1,
        total_pages=total_pages,
    )


def get_bundle(db: Session, bundle_id: str) -> Bundle | None:
    return db.query(Bundle).filter(Bundle.id == bundle_id).first()


def get_bundle_read(db: Session, bundle_id: str) -> BundleRead | None:
    row = get_bundle(db, bundle_id)
    return row_to_bundle_read(row) if row else None


def list_bundles(
    db: Session,
    channel: str | None = None,
    platform: str | None = None,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> tuple[list[BundleRead], Pagination]:
    """Newest first, filtered by channel/platform when given."""
    query = db.query(Bundle)
    if channel:
        query = query.filter(Bundle.channel == channel)
    if platform:
        query = query.filter(Bundle.platform == platform)
    total = query.count()
    rows = query.order_by(Bundle.id.desc()).offset(offset).limit(limit).all()
    return [row_to_bundle_read(r) for r in rows], calculate_pagination(total, limit, offset)


def list_channels(db: Session) -> list[str]:
    rows = db.query(Bundle.channel).distinct().order_by(Bundle.channel).all()
    return [r[0] for r in rows]


def get_target_app_versions(db: Session, platform: str) -> list[str]:
    rows = (
        db.query(Bundle.target_app_version)
        .filter(Bundle.platform == platform, Bundle.target_app_version.isnot(None))
        .distinct()
        .all()
    )
    return [r[0] for r in rows]


def list_candidate_bundles(db: Session, request: UpdateRequest) -> list[Bundle]:
    """Rows the in-memory engine needs for one request.

    Pre-narrows by platform, channel and strategy; the engine still applies
    every rule itself.
    """
    query = db.query(Bundle).filter(
        Bundle.platform == request.platform,
        Bundle.channel == request.channel,
    )
    if request.strategy == "fingerprint":
        query = query.filter(Bundle.fingerprint_hash == request.fingerprint_hash)
    else:
        versions = filter_compatible_app_versions(
            get_target_app_versions(db, request.platform), request.app_version or ""
        )
        if not versions:
            return []
        query = query.filter(Bundle.target_app_version.in_(versions))
    return query.all()


def insert_bundle(db: Session, data: BundleCreate, commit: bool = True) -> Bundle:
    if get_bundle(db, data.id) is not None:
        raise BundleConflictError(f"Bundle {data.id} already exists")
    row = Bundle(
        id=data.id,
        platform=data.platform,
        channel=data.channel,
        target_app_version=data.target_app_version,
        fingerprint_hash=data.fingerprint_hash,
        enabled=data.enabled,
        should_force_update=data.should_force_update,
        rollout_percentage=data.rollout_percentage,
        target_device_ids=data.target_device_ids,
        storage_uri=data.storage_uri,
        file_hash=data.file_hash,
        signature=data.signature,
        message=data.message,
        git_commit_hash=data.git_commit_hash,
        bundle_metadata=data.metadata,
    )
    db.add(row)
    if commit:
        db.commit()
        db.refresh(row)
    else:
        db.flush()
    logger.info("Inserted bundle %s (%s/%s)", row.id, row.platform, row.channel)
    return row


def insert_bundles(db: Session, items: list[BundleCreate]) -> list[Bundle]:
    """Insert all or nothing."""
    try:
        rows = [insert_bundle(db, item, commit=False) for item in items]
        db.commit()
    except Exception:
        db.rollback()
        raise
    return rows


def update_bundle(db: Session, bundle_id: str, patch: BundleUpdate) -> Bundle | None:
    """Apply the fields set on patch. Returns None when the bundle does not exist."""
    row = get_bundle(db, bundle_id)
    if row is None:
        return None
    changes: dict[str, Any] = patch.model_dump(exclude_unset=True)
    if "metadata" in changes:
        changes["bundle_metadata"] = changes.pop("metadata")
    for field, value in changes.items():
        setattr(row, field, value)
    if bool(row.target_app_version) == bool(row.fingerprint_hash):
        db.rollback()
        raise ValueError("Exactly one of targetAppVersion or fingerprintHash is required")
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    logger.info("Updated bundle %s: %s", bundle_id, ", ".join(sorted(changes)))
    return row


def delete_bundle(db: Session, bundle_id: str) -> bool:
    row = get_bundle(db, bundle_id)
    if row is None:
        return False
    db.delete(row)
    db.commit()
    logger.info("Deleted bundle %s", bundle_id)
    return True

"""Bundle publication: hash, sign, store the artifact and manifest, insert the row."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from bundlerelay.models import Bundle
from bundlerelay.schemas.bundle import BundleCreate
from bundlerelay.services.bundle_repository import insert_bundle
from bundlerelay.services.delivery_token import storage_key_for_bundle
from bundlerelay.services.ids import uuid7
from bundlerelay.services.signing import compute_bytes_hash, manifest_key, sign_file_hash, write_manifest
from bundlerelay.storage.object_store import ObjectStore
from bundlerelay.storage.store_plugin import storage_uri_for_key

logger = logging.getLogger(__name__)

BUNDLE_CONTENT_TYPE = "application/zip"


@dataclass
class PublishResult:
    bundle: Bundle
    manifest: dict[str, Any]


def publish_bundle(
    db: Session,
    store: ObjectStore,
    artifact_path: str | Path,
    platform: str,
    channel: str,
    target_app_version: str | None = None,
    fingerprint_hash: str | None = None,
    private_key_pem: str | None = None,
    message: str | None = None,
    git_commit_hash: str | None = None,
    should_force_update: bool = False,
    rollout_percentage: int = 100,
    target_device_ids: list[str] | None = None,
    enabled: bool = True,
) -> PublishResult:
    """Publish one artifact. Stored objects are removed again if the insert fails."""
    body = Path(artifact_path).read_bytes()
    file_hash = compute_bytes_hash(body)
    signature = sign_file_hash(file_hash, private_key_pem) if private_key_pem else None

    bundle_id = uuid7()
    key = storage_key_for_bundle(bundle_id)
    data = BundleCreate(
        id=bundle_id,
        platform=platform,
        channel=channel,
        target_app_version=target_app_version,
        fingerprint_hash=fingerprint_hash,
        enabled=enabled,
        should_force_update=should_force_update,
        rollout_percentage=rollout_percentage,
        target_device_ids=target_device_ids,
        storage_uri=storage_uri_for_key(key),
        file_hash=file_hash,
        signature=signature,
        message=message,
        git_commit_hash=git_commit_hash,
    )

    store.put_object(key, body, content_type=BUNDLE_CONTENT_TYPE)
    manifest = write_manifest(store, bundle_id, file_hash, signature)
    try:
        row = insert_bundle(db, data)
    except Exception:
        store.delete_object(key)
        store.delete_object(manifest_key(bundle_id))
        raise

    logger.info(
        "Published bundle %s (%s/%s, %d bytes, signed=%s)",
        bundle_id,
        platform,
        channel,
        len(body),
        signature is not None,
    )
    return PublishResult(bundle=row, manifest=manifest)

"""Device event tracking and per-bundle rollout statistics."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from bundlerelay.models import DeviceEvent
from bundlerelay.schemas.device_event import DeviceEventCreate, RolloutStats

logger = logging.getLogger(__name__)


def track_device_event(db: Session, event: DeviceEventCreate) -> DeviceEvent:
    row = DeviceEvent(
        device_id=event.device_id,
        bundle_id=event.bundle_id,
        event_type=event.event_type,
        platform=event.platform,
        app_version=event.app_version,
        channel=event.channel,
        event_metadata=event.metadata,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Tracked %s for device %s bundle %s", row.event_type, row.device_id, row.bundle_id)
    return row


def get_rollout_stats(db: Session, bundle_id: str) -> RolloutStats:
    """Counts over each device's latest event for bundle_id."""
    latest = (
        db.query(
            DeviceEvent.device_id.label("device_id"),
            func.max(DeviceEvent.id).label("max_id"),
        )
        .filter(DeviceEvent.bundle_id == bundle_id)
        .group_by(DeviceEvent.device_id)
        .subquery()
    )
    rows = (
        db.query(DeviceEvent.event_type, func.count())
        .join(latest, DeviceEvent.id == latest.c.max_id)
        .group_by(DeviceEvent.event_type)
        .all()
    )
    counts = {event_type: count for event_type, count in rows}
    promoted = counts.get("PROMOTED", 0)
    recovered = counts.get("RECOVERED", 0)
    total = promoted + recovered
    success_rate = round(promoted / total * 100, 2) if total else 0.0
    return RolloutStats(
        total_devices=total,
        promoted_count=promoted,
        recovered_count=recovered,
        success_rate=success_rate,
    )

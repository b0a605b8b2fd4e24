"""Shared row handling for the SQL encodings."""

from __future__ import annotations

from typing import Any

from bundlerelay.services.resolution.engine import UpdateInfo
from bundlerelay.services.resolution.rollout import parse_target_device_ids

# Column order of every encoding's result row
RESULT_COLUMNS = (
    "id",
    "should_force_update",
    "message",
    "status",
    "storage_uri",
    "file_hash",
    "signature",
    "rollout_percentage",
    "target_device_ids",
)


def row_to_update_info(row: Any) -> UpdateInfo | None:
    if row is None:
        return None
    data = row._mapping
    return UpdateInfo(
        id=data["id"],
        status=data["status"],
        should_force_update=bool(data["should_force_update"]),
        message=data["message"],
        storage_uri=data["storage_uri"],
        file_hash=data["file_hash"],
        signature=data["signature"],
        rollout_percentage=data["rollout_percentage"],
        target_device_ids=parse_target_device_ids(data["target_device_ids"]),
    )

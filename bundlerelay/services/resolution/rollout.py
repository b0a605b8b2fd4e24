"""Rollout eligibility gate.

Deterministic per (bundle, device): the same device always lands in the same
bucket for a bundle, so raising the percentage only ever adds devices.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from bundlerelay.services.resolution.constants import ROLLOUT_BUCKETS, ROLLOUT_FULL

logger = logging.getLogger(__name__)


def rollout_bucket(bundle_id: str, device_id: str) -> int:
    """Bucket in [0, 100) from the first 4 bytes of SHA-256("{bundle_id}:{device_id}")."""
    digest = hashlib.sha256(f"{bundle_id}:{device_id}".encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") % ROLLOUT_BUCKETS


def parse_target_device_ids(value: Any) -> list[str] | None:
    """Normalize the stored device list. SQL drivers may hand back JSON text."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return None
        value = json.loads(value)
    if not isinstance(value, list):
        raise ValueError(f"target_device_ids must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def check_eligibility(
    bundle_id: str,
    device_id: str,
    rollout_percentage: int | None,
    target_device_ids: list[str] | None,
) -> bool:
    """True when device_id may receive bundle_id.

    An explicit device list wins over the percentage.
    """
    if target_device_ids:
        return device_id in target_device_ids
    if rollout_percentage is None or rollout_percentage >= ROLLOUT_FULL:
        return True
    if rollout_percentage <= 0:
        return False
    return rollout_bucket(bundle_id, device_id) < rollout_percentage


def apply_rollout_gate(info: Any, device_id: str | None) -> Any:
    """Veto an UPDATE the device is not rolled out to. ROLLBACK is never gated."""
    if info is None or device_id is None or info.status != "UPDATE":
        return info
    eligible = check_eligibility(
        info.id,
        device_id,
        info.rollout_percentage,
        parse_target_device_ids(info.target_device_ids),
    )
    if not eligible:
        logger.info(
            "Rollout veto: device %s not eligible for bundle %s (rollout=%s%%)",
            device_id,
            info.id,
            info.rollout_percentage,
        )
        return None
    return info

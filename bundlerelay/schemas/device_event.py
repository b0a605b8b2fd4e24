"""Device event tracking and rollout statistics schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from bundlerelay.schemas.base import CamelModel

EventType = Literal["PROMOTED", "RECOVERED"]


class DeviceEventCreate(CamelModel):
    device_id: str = Field(..., min_length=1, max_length=255)
    bundle_id: str = Field(..., min_length=1, max_length=36)
    event_type: EventType
    platform: Literal["ios", "android"]
    app_version: str | None = Field(None, max_length=255)
    channel: str = Field(..., min_length=1, max_length=255)
    metadata: dict[str, Any] | None = None


class RolloutStats(CamelModel):
    total_devices: int
    promoted_count: int
    recovered_count: int
    success_rate: float

"""Bundle schemas for the management API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from bundlerelay.schemas.base import CamelModel

Platform = Literal["ios", "android"]


class BundleCreate(CamelModel):
    """Schema for publishing a bundle. Exactly one of targetAppVersion / fingerprintHash."""

    id: str = Field(..., min_length=1, max_length=36)
    platform: Platform
    channel: str = Field("production", min_length=1, max_length=255)
    target_app_version: str | None = Field(None, max_length=255)
    fingerprint_hash: str | None = Field(None, max_length=255)
    enabled: bool = True
    should_force_update: bool = False
    rollout_percentage: int = Field(100, ge=0, le=100)
    target_device_ids: list[str] | None = None
    storage_uri: str | None = None
    file_hash: str = Field(..., min_length=1, max_length=128)
    signature: str | None = None
    message: str | None = None
    git_commit_hash: str | None = Field(None, max_length=64)
    metadata: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _one_strategy(self) -> "BundleCreate":
        if bool(self.target_app_version) == bool(self.fingerprint_hash):
            raise ValueError("Exactly one of targetAppVersion or fingerprintHash is required")
        return self


class BundleUpdate(CamelModel):
    """Partial update. Only fields present in the request body are applied."""

    channel: str | None = Field(None, min_length=1, max_length=255)
    target_app_version: str | None = Field(None, max_length=255)
    fingerprint_hash: str | None = Field(None, max_length=255)
    enabled: bool | None = None
    should_force_update: bool | None = None
    rollout_percentage: int | None = Field(None, ge=0, le=100)
    target_device_ids: list[str] | None = None
    storage_uri: str | None = None
    file_hash: str | None = Field(None, min_length=1, max_length=128)
    signature: str | None = None
    message: str | None = None
    git_commit_hash: str | None = Field(None, max_length=64)
    metadata: dict[str, Any] | None = None

    @field_validator(
        "channel", "enabled", "should_force_update", "rollout_percentage", "file_hash"
    )
    @classmethod
    def _not_null(cls, v: Any) -> Any:
        # Absent means "leave unchanged"; an explicit null would clear a required column
        if v is None:
            raise ValueError("may not be null")
        return v


class BundleRead(CamelModel):
    id: str
    platform: Platform
    channel: str
    target_app_version: str | None
    fingerprint_hash: str | None
    enabled: bool
    should_force_update: bool
    rollout_percentage: int
    target_device_ids: list[str] | None
    storage_uri: str | None
    file_hash: str
    signature: str | None
    message: str | None
    git_commit_hash: str | None
    metadata: dict[str, Any] | None
    created_at: datetime | None


class Pagination(CamelModel):
    total: int
    limit: int
    offset: int
    has_next_page: bool
    has_previous_page: bool
    current_page: int
    total_pages: int


class BundleListResponse(CamelModel):
    data: list[BundleRead]
    pagination: Pagination


class ChannelsResponse(CamelModel):
    channels: list[str]


class SuccessResponse(CamelModel):
    success: bool = True

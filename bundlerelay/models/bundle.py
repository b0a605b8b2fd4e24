"""Bundle model: one published JavaScript bundle for a platform and channel."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bundlerelay.db.session import Base


class Bundle(Base):
    """Published bundle. Ids are UUIDv7 strings; lexicographic order is creation order."""

    __tablename__ = "bundles"

    __table_args__ = (
        CheckConstraint("platform IN ('ios', 'android')", name="ck_bundles_platform"),
        CheckConstraint(
            "rollout_percentage >= 0 AND rollout_percentage <= 100",
            name="ck_bundles_rollout_percentage",
        ),
        Index("ix_bundles_platform_channel", "platform", "channel"),
        Index("ix_bundles_target_app_version", "target_app_version"),
        Index("ix_bundles_fingerprint_hash", "fingerprint_hash"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    platform: Mapped[str] = mapped_column(String(16), nullable=False)
    channel: Mapped[str] = mapped_column(String(255), nullable=False, default="production")
    target_app_version: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fingerprint_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    should_force_update: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rollout_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    target_device_ids: Mapped[list[str] | None] = mapped_column(
        JSON(none_as_null=True), nullable=True
    )
    storage_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    # Base64 RSA-SHA256 over file_hash; None for unsigned bundles
    signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    git_commit_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # "metadata" is reserved on declarative classes
    bundle_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON(none_as_null=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

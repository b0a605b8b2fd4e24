"""Update request and candidate filter.

A request is validated when constructed, so nothing downstream sees a request
without a platform or without exactly one strategy value.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from bundlerelay.errors import InputError
from bundlerelay.services.resolution.constants import (
    DEFAULT_CHANNEL,
    NIL_UUID,
    PLATFORMS,
    UpdateStrategy,
)
from bundlerelay.services.resolution.semver import filter_compatible_app_versions

BundleT = TypeVar("BundleT")


@dataclass(frozen=True)
class UpdateRequest:
    """One device check-in."""

    platform: str
    bundle_id: str
    app_version: str | None = None
    fingerprint_hash: str | None = None
    min_bundle_id: str = NIL_UUID
    channel: str = DEFAULT_CHANNEL
    device_id: str | None = None

    def __post_init__(self) -> None:
        if self.platform not in PLATFORMS:
            raise InputError(
                f"Invalid platform {self.platform!r}: expected one of {', '.join(PLATFORMS)}"
            )
        if not self.bundle_id:
            raise InputError("bundle_id is required")
        has_version = bool(self.app_version)
        has_fingerprint = bool(self.fingerprint_hash)
        if has_version == has_fingerprint:
            raise InputError("Exactly one of app_version or fingerprint_hash is required")
        # Clients send empty strings for unset optional segments
        if not self.min_bundle_id:
            object.__setattr__(self, "min_bundle_id", NIL_UUID)
        if not self.channel:
            object.__setattr__(self, "channel", DEFAULT_CHANNEL)
        if not self.device_id:
            object.__setattr__(self, "device_id", None)

    @property
    def strategy(self) -> UpdateStrategy:
        return "fingerprint" if self.fingerprint_hash else "appVersion"


def _matches_strategy(
    bundle: Any, request: UpdateRequest, compatible_versions: frozenset[str]
) -> bool:
    if request.strategy == "fingerprint":
        return bundle.fingerprint_hash is not None and bundle.fingerprint_hash == request.fingerprint_hash
    return bundle.target_app_version is not None and bundle.target_app_version in compatible_versions


def filter_candidates(bundles: Iterable[BundleT], request: UpdateRequest) -> list[BundleT]:
    """Bundles the request may resolve to: platform, channel, enabled, strategy, and id floor.

    Works on any objects exposing the Bundle column attributes (ORM rows or plain records).
    Output order is not significant.
    """
    pool: Sequence[BundleT] = list(bundles)
    compatible_versions: frozenset[str] = frozenset()
    if request.strategy == "appVersion":
        compatible_versions = frozenset(
            filter_compatible_app_versions(
                (b.target_app_version for b in pool if b.target_app_version is not None),
                request.app_version or "",
            )
        )

    return [
        b
        for b in pool
        if b.platform == request.platform
        and b.channel == request.channel
        and b.enabled
        and _matches_strategy(b, request, compatible_versions)
        and b.id >= request.min_bundle_id
    ]

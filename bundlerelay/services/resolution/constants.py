"""Resolution constants shared by the in-memory engine and the SQL encodings."""

from __future__ import annotations

from typing import Literal

# Reserved bundle id: "no bundle installed" on requests, "revert to embedded bundle" on results
NIL_UUID: str = "00000000-0000-0000-0000-000000000000"

DEFAULT_CHANNEL: str = "production"

PLATFORMS: tuple[str, ...] = ("ios", "android")

UpdateStatus = Literal["UPDATE", "ROLLBACK"]
UpdateStrategy = Literal["appVersion", "fingerprint"]

# ── Rollout ───────────────────────────────────────────────────────────────

ROLLOUT_FULL: int = 100
ROLLOUT_BUCKETS: int = 100

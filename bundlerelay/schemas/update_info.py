"""Update-check response schema."""

from __future__ import annotations

from typing import Literal

from bundlerelay.schemas.base import CamelModel


class AppUpdateInfoResponse(CamelModel):
    """UpdateInfo plus a download URL for the chosen bundle."""

    id: str
    status: Literal["UPDATE", "ROLLBACK"]
    should_force_update: bool
    message: str | None
    storage_uri: str | None
    file_hash: str | None
    signature: str | None
    file_url: str | None

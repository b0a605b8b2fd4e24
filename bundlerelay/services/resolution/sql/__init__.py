"""SQL-equivalent resolution: one encoding per supported database dialect."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from bundlerelay.errors import BundleRelayError
from bundlerelay.services.bundle_repository import get_target_app_versions
from bundlerelay.services.resolution.candidates import UpdateRequest
from bundlerelay.services.resolution.engine import UpdateInfo
from bundlerelay.services.resolution.semver import filter_compatible_app_versions
from bundlerelay.services.resolution.sql.postgres import resolve_update_postgres
from bundlerelay.services.resolution.sql.sqlite import resolve_update_sqlite

logger = logging.getLogger(__name__)

_ENCODINGS = {
    "sqlite": resolve_update_sqlite,
    "postgresql": resolve_update_postgres,
}


def resolve_update_sql(db: Session, request: UpdateRequest) -> UpdateInfo | None:
    """Resolve with the encoding for the session's dialect. No rollout gating."""
    dialect = db.get_bind().dialect.name
    encoding = _ENCODINGS.get(dialect)
    if encoding is None:
        raise BundleRelayError(f"No SQL resolution encoding for dialect {dialect!r}")

    compatible_versions: list[str] = []
    if request.strategy == "appVersion":
        compatible_versions = filter_compatible_app_versions(
            get_target_app_versions(db, request.platform), request.app_version or ""
        )
    result = encoding(db, request, compatible_versions)
    logger.debug(
        "SQL (%s) resolved %s/%s bundle=%s -> %s",
        dialect,
        request.platform,
        request.channel,
        request.bundle_id,
        f"{result.status} {result.id}" if result else "no change",
    )
    return result


__all__ = [
    "resolve_update_postgres",
    "resolve_update_sql",
    "resolve_update_sqlite",
]

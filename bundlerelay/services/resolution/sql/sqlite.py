"""SQLite encoding of the decision engine.

One read-only CTE query per check-in. The compatible version list is bound as
an expanding parameter; SQLite compares TEXT with BINARY collation, which is
the same order as Python string comparison.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause

from bundlerelay.services.resolution.candidates import UpdateRequest
from bundlerelay.services.resolution.constants import NIL_UUID, ROLLOUT_FULL
from bundlerelay.services.resolution.engine import UpdateInfo
from bundlerelay.services.resolution.sql.rows import row_to_update_info

_APP_VERSION_MATCH = "b.target_app_version IN :target_app_versions"
_NO_VERSION_MATCH = "1 = 0"
_FINGERPRINT_MATCH = "b.fingerprint_hash = i.fingerprint_hash"

_QUERY = """
WITH input AS (
  SELECT
    :platform AS app_platform,
    :bundle_id AS bundle_id,
    :min_bundle_id AS min_bundle_id,
    :channel AS channel,
    :fingerprint_hash AS fingerprint_hash,
    '{nil_uuid}' AS nil_uuid
),
update_candidate AS (
  SELECT
    b.id, b.should_force_update, b.message, 'UPDATE' AS status,
    b.storage_uri, b.file_hash, b.signature, b.rollout_percentage, b.target_device_ids
  FROM bundles b, input i
  WHERE b.enabled = 1
    AND b.platform = i.app_platform
    AND b.channel = i.channel
    AND b.id >= i.bundle_id
    AND b.id >= i.min_bundle_id
    AND {match}
  ORDER BY b.id DESC
  LIMIT 1
),
rollback_candidate AS (
  SELECT
    b.id, 1 AS should_force_update, b.message, 'ROLLBACK' AS status,
    b.storage_uri, b.file_hash, b.signature, b.rollout_percentage, b.target_device_ids
  FROM bundles b, input i
  WHERE b.enabled = 1
    AND b.platform = i.app_platform
    AND b.channel = i.channel
    AND b.id < i.bundle_id
    AND b.id >= i.min_bundle_id
    AND {match}
  ORDER BY b.id DESC
  LIMIT 1
),
final_result AS (
  SELECT * FROM update_candidate
  UNION ALL
  SELECT * FROM rollback_candidate
  WHERE NOT EXISTS (SELECT 1 FROM update_candidate)
)
SELECT
  f.id, f.should_force_update, f.message, f.status,
  f.storage_uri, f.file_hash, f.signature, f.rollout_percentage, f.target_device_ids
FROM final_result f, input i
WHERE f.id <> i.bundle_id

UNION ALL

SELECT
  i.nil_uuid AS id, 1 AS should_force_update, NULL AS message, 'ROLLBACK' AS status,
  NULL AS storage_uri, NULL AS file_hash, NULL AS signature, {rollout_full} AS rollout_percentage,
  NULL AS target_device_ids
FROM input i
WHERE NOT EXISTS (SELECT 1 FROM final_result)
  AND i.bundle_id > i.min_bundle_id
"""


def build_query(strategy: str, has_versions: bool) -> TextClause:
    if strategy == "fingerprint":
        match = _FINGERPRINT_MATCH
    else:
        match = _APP_VERSION_MATCH if has_versions else _NO_VERSION_MATCH
    stmt = text(_QUERY.format(nil_uuid=NIL_UUID, match=match, rollout_full=ROLLOUT_FULL))
    if match == _APP_VERSION_MATCH:
        stmt = stmt.bindparams(bindparam("target_app_versions", expanding=True))
    return stmt


def resolve_update_sqlite(
    connection: Any, request: UpdateRequest, compatible_versions: Sequence[str]
) -> UpdateInfo | None:
    """Run the SQLite encoding. connection is a Session or Connection."""
    versions = list(compatible_versions)
    stmt = build_query(request.strategy, bool(versions))
    params: dict[str, Any] = {
        "platform": request.platform,
        "bundle_id": request.bundle_id,
        "min_bundle_id": request.min_bundle_id,
        "channel": request.channel,
        "fingerprint_hash": request.fingerprint_hash,
    }
    if request.strategy == "appVersion" and versions:
        params["target_app_versions"] = versions
    row = connection.execute(stmt, params).first()
    return row_to_update_info(row)

"""PostgreSQL encoding of the decision engine.

Ids are compared under COLLATE "C" so ordering is byte order regardless of the
database's default collation. The compatible version list is bound as a text
array and matched with ``= ANY``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from bundlerelay.services.resolution.candidates import UpdateRequest
from bundlerelay.services.resolution.constants import NIL_UUID, ROLLOUT_FULL
from bundlerelay.services.resolution.engine import UpdateInfo
from bundlerelay.services.resolution.sql.rows import row_to_update_info

_APP_VERSION_MATCH = "b.target_app_version = ANY(CAST(:target_app_versions AS text[]))"
_FINGERPRINT_MATCH = "b.fingerprint_hash = i.fingerprint_hash"

_QUERY = """
WITH input AS (
  SELECT
    CAST(:platform AS text) AS app_platform,
    CAST(:bundle_id AS text) AS bundle_id,
    CAST(:min_bundle_id AS text) AS min_bundle_id,
    CAST(:channel AS text) AS channel,
    CAST(:fingerprint_hash AS text) AS fingerprint_hash,
    CAST('{nil_uuid}' AS text) AS nil_uuid
),
update_candidate AS (
  SELECT
    b.id, b.should_force_update, b.message, CAST('UPDATE' AS text) AS status,
    b.storage_uri, b.file_hash, b.signature, b.rollout_percentage, b.target_device_ids
  FROM bundles b, input i
  WHERE b.enabled = TRUE
    AND b.platform = i.app_platform
    AND b.channel = i.channel
    AND b.id COLLATE "C" >= i.bundle_id
    AND b.id COLLATE "C" >= i.min_bundle_id
    AND {match}
  ORDER BY b.id COLLATE "C" DESC
  LIMIT 1
),
rollback_candidate AS (
  SELECT
    b.id, TRUE AS should_force_update, b.message, CAST('ROLLBACK' AS text) AS status,
    b.storage_uri, b.file_hash, b.signature, b.rollout_percentage, b.target_device_ids
  FROM bundles b, input i
  WHERE b.enabled = TRUE
    AND b.platform = i.app_platform
    AND b.channel = i.channel
    AND b.id COLLATE "C" < i.bundle_id
    AND b.id COLLATE "C" >= i.min_bundle_id
    AND {match}
  ORDER BY b.id COLLATE "C" DESC
  LIMIT 1
),
final_result AS (
  SELECT * FROM update_candidate
  UNION ALL
  SELECT * FROM rollback_candidate
  WHERE NOT EXISTS (SELECT 1 FROM update_candidate)
)
SELECT
  CAST(f.id AS text) AS id, f.should_force_update, f.message, f.status,
  f.storage_uri, CAST(f.file_hash AS text) AS file_hash, f.signature, f.rollout_percentage,
  f.target_device_ids
FROM final_result f, input i
WHERE f.id <> i.bundle_id

UNION ALL

SELECT
  i.nil_uuid AS id, TRUE AS should_force_update, CAST(NULL AS text) AS message,
  CAST('ROLLBACK' AS text) AS status, CAST(NULL AS text) AS storage_uri,
  CAST(NULL AS text) AS file_hash, CAST(NULL AS text) AS signature,
  {rollout_full} AS rollout_percentage,
  CAST(NULL AS json) AS target_device_ids
FROM input i
WHERE NOT EXISTS (SELECT 1 FROM final_result)
  AND i.bundle_id COLLATE "C" > i.min_bundle_id
"""


def build_query(strategy: str) -> TextClause:
    match = _FINGERPRINT_MATCH if strategy == "fingerprint" else _APP_VERSION_MATCH
    return text(_QUERY.format(nil_uuid=NIL_UUID, match=match, rollout_full=ROLLOUT_FULL))


def resolve_update_postgres(
    connection: Any, request: UpdateRequest, compatible_versions: Sequence[str]
) -> UpdateInfo | None:
    """Run the PostgreSQL encoding. connection is a Session or Connection.

    An empty version list binds an empty array, which matches no bundle.
    """
    stmt = build_query(request.strategy)
    params: dict[str, Any] = {
        "platform": request.platform,
        "bundle_id": request.bundle_id,
        "min_bundle_id": request.min_bundle_id,
        "channel": request.channel,
        "fingerprint_hash": request.fingerprint_hash,
    }
    if request.strategy == "appVersion":
        params["target_app_versions"] = list(compatible_versions)
    row = connection.execute(stmt, params).first()
    return row_to_update_info(row)

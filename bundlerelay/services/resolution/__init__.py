"""Update resolution: version matching, candidate filtering, decision and rollout gate."""

from bundlerelay.services.resolution.candidates import UpdateRequest, filter_candidates
from bundlerelay.services.resolution.constants import DEFAULT_CHANNEL, NIL_UUID
from bundlerelay.services.resolution.engine import UpdateInfo, resolve_update
from bundlerelay.services.resolution.rollout import apply_rollout_gate, check_eligibility
from bundlerelay.services.resolution.semver import (
    filter_compatible_app_versions,
    semver_satisfies,
)

__all__ = [
    "DEFAULT_CHANNEL",
    "NIL_UUID",
    "UpdateInfo",
    "UpdateRequest",
    "apply_rollout_gate",
    "check_eligibility",
    "filter_candidates",
    "filter_compatible_app_versions",
    "resolve_update",
    "semver_satisfies",
]

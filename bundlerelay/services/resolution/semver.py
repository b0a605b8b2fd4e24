"""Version compatibility matcher for the app-version strategy.

Bundle authors store npm-style ranges (``1.x.x``, ``~1.2.3``, ``^1.2.3``,
``1.2.3 - 1.2.7``, ``>=1.2.3 <1.2.7``, ``*``) or exact versions; devices report
whatever their native build says (``1.0``, ``1.12``, ``2.3.1``). Matching is
symmetric: a stored range matches when the coerced device version satisfies
it, and a device range matches when a stored exact version satisfies it.

Two malformed strings are treated as compatible with each other. That rule is
kept for behaviour parity with existing clients.

Device versions are coerced the way npm ``semver.coerce`` does, which drops
prerelease and build tags: a device on ``1.0.0-beta.3`` is matched as
``1.0.0`` and receives bundles for ``1.x.x`` or ``1.0.0``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from nodesemver import make_range, make_semver, satisfies

# Same rules as npm semver.coerce: first run of 1-3 numeric components
_COERCE_RE = re.compile(r"(^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])")


def coerce_version(value: str) -> str | None:
    """Return "M.m.p" built from the first numeric run in value, or None."""
    match = _COERCE_RE.search(value or "")
    if match is None:
        return None
    major = int(match.group(2))
    minor = int(match.group(3) or 0)
    patch = int(match.group(4) or 0)
    return f"{major}.{minor}.{patch}"


def is_valid_version(value: str) -> bool:
    try:
        make_semver(value, False)
    except (ValueError, TypeError):
        return False
    return True


def is_valid_range(value: str) -> bool:
    try:
        make_range(value, False)
    except (ValueError, TypeError):
        return False
    return True


def semver_satisfies(target_app_version: str, current_version: str) -> bool:
    """True when a bundle targeting target_app_version may be served to current_version."""
    target_malformed = not is_valid_range(target_app_version)
    coerced = coerce_version(current_version)
    current_malformed = coerced is None and not is_valid_range(current_version)

    if target_malformed or current_malformed:
        return target_malformed and current_malformed

    if coerced is not None and satisfies(coerced, target_app_version, False):
        return True

    # Device reported a range ("1.2", "1.x"); match stored exact versions inside it
    if (
        not is_valid_version(current_version)
        and is_valid_range(current_version)
        and is_valid_version(target_app_version)
    ):
        return bool(satisfies(target_app_version, current_version, False))

    return False


def filter_compatible_app_versions(
    target_app_versions: Iterable[str], current_version: str
) -> list[str]:
    """Distinct stored target versions compatible with current_version, sorted descending."""
    compatible = {
        version
        for version in target_app_versions
        if version is not None and semver_satisfies(version, current_version)
    }
    return sorted(compatible, reverse=True)

"""Move legacy ``{platform}/{bundleId}/bundle.zip`` artifacts to ``{bundleId}/bundle.zip``.

Also rewrites the legacy root ``update.json`` index: drops ``fileUrl`` (download
URLs are now signed per request) and fills in ``channel: "production"``.
"""

from __future__ import annotations

import json
import logging
import re

from bundlerelay.services.resolution.constants import DEFAULT_CHANNEL
from bundlerelay.storage.migrations.migrator import StorageMigration

logger = logging.getLogger(__name__)

LEGACY_INDEX_KEY = "update.json"
_LEGACY_KEY_RE = re.compile(r"^(ios|android)/([^/]+)/(bundle\.zip|manifest\.json)$")


class FlattenPlatformPrefix(StorageMigration):
    name = "0001_flatten_platform_prefix"

    def migrate(self) -> None:
        keys = self.get_keys("")

        if LEGACY_INDEX_KEY in keys:
            entries = self.read_json(LEGACY_INDEX_KEY)
            if isinstance(entries, list):
                rewritten = []
                for entry in entries:
                    item = {k: v for k, v in entry.items() if k != "fileUrl"}
                    item.setdefault("channel", DEFAULT_CHANNEL)
                    rewritten.append(item)
                self.update(
                    LEGACY_INDEX_KEY,
                    json.dumps(rewritten, indent=2).encode("utf-8"),
                    content_type="application/json",
                )
            else:
                logger.warning("%s does not contain a list; left unchanged", LEGACY_INDEX_KEY)

        for key in keys:
            match = _LEGACY_KEY_RE.match(key)
            if match is None:
                continue
            _, bundle_id, rest = match.groups()
            self.move(key, f"{bundle_id}/{rest}")

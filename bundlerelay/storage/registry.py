"""Storage adapter registry keyed by URI protocol."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from bundlerelay.errors import NoMatchingStorageAdapter, StorageError
from bundlerelay.storage.base import StoragePlugin

logger = logging.getLogger(__name__)

# Served as-is; no adapter involved
PASSTHROUGH_PROTOCOLS = frozenset({"http", "https"})


def get_protocol(storage_uri: str) -> str:
    scheme = urlsplit(storage_uri).scheme
    if not scheme:
        raise StorageError(f"Storage URI has no protocol: {storage_uri!r}")
    return scheme.lower()


class StorageRegistry:
    """Maps protocol -> StoragePlugin. Populated once when the app starts."""

    def __init__(self, plugins: list[StoragePlugin] | None = None):
        self._plugins: dict[str, StoragePlugin] = {}
        for plugin in plugins or []:
            self.register(plugin)

    def register(self, plugin: StoragePlugin) -> None:
        protocol = plugin.supported_protocol.lower()
        if protocol in self._plugins:
            raise ValueError(f"Storage protocol {protocol!r} already registered by {self._plugins[protocol].name}")
        self._plugins[protocol] = plugin
        logger.info("Registered storage plugin %s for %s://", plugin.name, protocol)

    def get(self, protocol: str) -> StoragePlugin | None:
        return self._plugins.get(protocol.lower())

    @property
    def protocols(self) -> list[str]:
        return sorted(self._plugins)

    def resolve_file_url(self, storage_uri: str | None) -> str | None:
        """Download URL for storage_uri; None when the bundle has no stored artifact."""
        if not storage_uri:
            return None
        protocol = get_protocol(storage_uri)
        if protocol in PASSTHROUGH_PROTOCOLS:
            return storage_uri
        plugin = self.get(protocol)
        if plugin is None:
            raise NoMatchingStorageAdapter(protocol)
        url = plugin.get_download_url(storage_uri)
        if not url:
            raise StorageError(f"Storage plugin {plugin.name} returned empty fileUrl")
        return url

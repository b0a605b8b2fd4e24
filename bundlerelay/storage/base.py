"""Storage adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class StoragePlugin(ABC):
    """Turns a bundle's storage URI into a URL the device can download from.

    One plugin per URI scheme; plugins are registered once at startup in a
    ``StorageRegistry``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier for this adapter (e.g. 'store')."""
        ...

    @property
    @abstractmethod
    def supported_protocol(self) -> str:
        """URI scheme this adapter handles, without '://'."""
        ...

    @abstractmethod
    def get_download_url(self, storage_uri: str) -> str:
        """Return a download URL for storage_uri."""
        ...

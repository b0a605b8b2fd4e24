"""Built-in adapter for artifacts in this server's own object store.

``storage://<key>`` becomes ``{public_base_url}/files/<key>?token=<jwt>``, served
by the signed download route.
"""

from __future__ import annotations

from urllib.parse import quote, urlencode, urlsplit

from bundlerelay.errors import StorageError
from bundlerelay.services.delivery_token import create_delivery_token
from bundlerelay.storage.base import StoragePlugin
from bundlerelay.storage.object_store import normalize_key

STORE_PROTOCOL = "storage"


def storage_uri_for_key(key: str) -> str:
    return f"{STORE_PROTOCOL}://{normalize_key(key)}"


def key_from_storage_uri(storage_uri: str) -> str:
    parts = urlsplit(storage_uri)
    if parts.scheme != STORE_PROTOCOL:
        raise StorageError(f"Not a {STORE_PROTOCOL}:// URI: {storage_uri!r}")
    return normalize_key(f"{parts.netloc}{parts.path}")


class StoreStoragePlugin(StoragePlugin):
    """Signs short-lived download URLs for the local object store."""

    def __init__(self, public_base_url: str, secret: str, ttl_seconds: int = 60):
        if not secret:
            raise ValueError("A delivery token secret is required for the storage plugin")
        self.public_base_url = public_base_url.rstrip("/")
        self.secret = secret
        self.ttl_seconds = ttl_seconds

    @property
    def name(self) -> str:
        return "store"

    @property
    def supported_protocol(self) -> str:
        return STORE_PROTOCOL

    def get_download_url(self, storage_uri: str) -> str:
        key = key_from_storage_uri(storage_uri)
        token = create_delivery_token(key, self.secret, self.ttl_seconds)
        return f"{self.public_base_url}/files/{quote(key)}?{urlencode({'token': token})}"

"""Signed delivery tokens: short-lived JWTs binding a download to one storage key."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from bundlerelay.errors import TokenError

if TYPE_CHECKING:
    from bundlerelay.storage.object_store import ObjectStore, StoredObject

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DELIVERY_TOKEN_TTL_SECONDS = 60
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def storage_key_for_bundle(bundle_id: str) -> str:
    return f"{bundle_id}/bundle.zip"


def create_delivery_token(
    key: str, secret: str, ttl_seconds: int = DELIVERY_TOKEN_TTL_SECONDS
) -> str:
    """HS256 JWT with claims {"key": key, "exp": now + ttl}."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
    return jwt.encode({"key": key, "exp": expire}, secret, algorithm=ALGORITHM)


def verify_delivery_token(path: str, token: str | None, secret: str) -> str:
    """Return the storage key for path if token authorizes it, else raise TokenError."""
    key = path.lstrip("/")
    if not token:
        raise TokenError(400, "Missing token")
    if not secret:
        # An empty HMAC key would accept tokens anyone can mint
        logger.error("Delivery token presented for %s but no signing secret is configured", key)
        raise TokenError(403, "Invalid or expired token")
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("Rejected delivery token for %s: %s", key, e)
        raise TokenError(403, "Invalid or expired token") from e
    if payload.get("key") != key:
        logger.warning("Delivery token key mismatch: token=%r path=%r", payload.get("key"), key)
        raise TokenError(403, "Token does not match requested file")
    return key


def serve_signed_object(
    path: str, token: str | None, secret: str, store: "ObjectStore"
) -> "StoredObject":
    """Verify the token and fetch the object it authorizes. Absent object -> 404."""
    key = verify_delivery_token(path, token, secret)
    obj = store.get_object(key)
    if obj is None:
        raise TokenError(404, "File not found")
    return obj


def download_headers(obj: "StoredObject") -> dict[str, str]:
    filename = obj.key.split("/")[-1]
    return {
        "Content-Type": obj.content_type or DEFAULT_CONTENT_TYPE,
        "Content-Disposition": f"attachment; filename={filename}",
    }

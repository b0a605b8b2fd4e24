"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

import logging
import secrets

from fastapi import Header, HTTPException, Request

from bundlerelay.config import get_settings
from bundlerelay.db.session import get_db  # re-export
from bundlerelay.storage.object_store import ObjectStore
from bundlerelay.storage.registry import StorageRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "get_db",
    "get_object_store",
    "get_storage_registry",
    "require_admin_token",
]


def require_admin_token(x_admin_token: str | None = Header(None)) -> None:
    """Validate the management token from the X-Admin-Token header.

    Raises 403 if the token is missing, not configured, or does not match.
    """
    expected = get_settings().admin_token
    if not expected or not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        logger.warning("Management API auth failed: invalid or missing token")
        raise HTTPException(status_code=403, detail="Invalid admin token")


def get_storage_registry(request: Request) -> StorageRegistry:
    """Registry built once in create_app()."""
    return request.app.state.storage_registry


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store

"""Signed artifact downloads for the built-in object store."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from bundlerelay.api.deps import get_object_store
from bundlerelay.config import get_settings
from bundlerelay.services.delivery_token import download_headers, serve_signed_object
from bundlerelay.storage.object_store import ObjectStore

router = APIRouter()


@router.get("/{key:path}")
def download_file(
    key: str,
    token: str | None = Query(None),
    store: ObjectStore = Depends(get_object_store),
) -> Response:
    """Stream one object if the token was issued for exactly this key."""
    obj = serve_signed_object(key, token, get_settings().jwt_secret, store)
    headers = download_headers(obj)
    media_type = headers.pop("Content-Type")
    return Response(content=obj.body, media_type=media_type, headers=headers)

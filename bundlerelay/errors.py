"""Error taxonomy and structured error helpers for API responses."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def build_error_payload(
    code: str, message: str, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class BundleRelayError(Exception):
    """Base class for all BundleRelay errors."""


class InputError(BundleRelayError, ValueError):
    """Malformed update-check arguments (bad platform, missing strategy value)."""


class StorageError(BundleRelayError):
    """Object store or storage adapter failure."""


class NoMatchingStorageAdapter(StorageError):
    """A bundle's storage URI uses a protocol with no registered adapter."""

    def __init__(self, protocol: str):
        super().__init__(f"No storage plugin for protocol: {protocol}")
        self.protocol = protocol


class SigningError(BundleRelayError):
    """Key material could not be loaded or used for signing."""


class TokenError(BundleRelayError):
    """Delivery token rejected. status_code is 400, 403 or 404."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class MigrationFailure(BundleRelayError):
    """A storage migration failed; its changes were rolled back from backups."""

    def __init__(self, migration_name: str, cause: BaseException):
        super().__init__(f"Migration {migration_name} failed: {cause}")
        self.migration_name = migration_name
        self.cause = cause


async def input_error_handler(_: Request, exc: InputError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=build_error_payload("invalid_input", str(exc)),
    )


async def token_error_handler(_: Request, exc: TokenError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_payload("invalid_token", exc.detail),
    )


async def storage_error_handler(_: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage resolution failed: %s", exc)
    code = "no_storage_adapter" if isinstance(exc, NoMatchingStorageAdapter) else "storage_error"
    return JSONResponse(
        status_code=500,
        content=build_error_payload(code, str(exc)),
    )

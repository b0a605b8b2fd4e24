"""Object store for bundle artifacts and manifests.

Keys are forward-slash paths such as ``<bundleId>/bundle.zip``. The filesystem
store keeps content types in a sidecar tree so ``list_keys`` only reports
artifacts.
"""

from __future__ import annotations

import json
import logging
import mimetypes
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from bundlerelay.errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
_META_DIR = ".meta"


@dataclass(frozen=True)
class StoredObject:
    key: str
    body: bytes
    content_type: str | None


def normalize_key(key: str) -> str:
    """Validate a storage key. Rejects absolute paths and parent references."""
    if not key or key.startswith("/") or "\\" in key:
        raise StorageError(f"Invalid storage key: {key!r}")
    parts = key.split("/")
    if any(part in ("..", ".", "") for part in parts) or parts[0] == _META_DIR:
        raise StorageError(f"Invalid storage key: {key!r}")
    return key


class ObjectStore(ABC):
    """Minimal blob store used by delivery, publishing and storage migrations."""

    @abstractmethod
    def get_object(self, key: str) -> StoredObject | None:
        """Return the object, or None when absent."""
        ...

    @abstractmethod
    def put_object(self, key: str, body: bytes, content_type: str | None = None) -> None:
        ...

    @abstractmethod
    def delete_object(self, key: str) -> bool:
        """Delete key. Returns False when it did not exist."""
        ...

    @abstractmethod
    def list_keys(self, prefix: str = "") -> list[str]:
        """All keys starting with prefix, sorted."""
        ...

    def copy_object(self, source_key: str, dest_key: str) -> None:
        obj = self.get_object(source_key)
        if obj is None:
            raise StorageError(f"Cannot copy missing object: {source_key}")
        self.put_object(dest_key, obj.body, obj.content_type)

    def exists(self, key: str) -> bool:
        return self.get_object(key) is not None


class LocalObjectStore(ObjectStore):
    """Filesystem-backed store rooted at a directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / normalize_key(key)).resolve()
        if self.root not in path.parents:
            raise StorageError(f"Storage key escapes store root: {key!r}")
        return path

    def _meta_path(self, key: str) -> Path:
        return self.root / _META_DIR / f"{normalize_key(key)}.json"

    def get_object(self, key: str) -> StoredObject | None:
        path = self._path(key)
        if not path.is_file():
            return None
        content_type: str | None = None
        meta_path = self._meta_path(key)
        if meta_path.is_file():
            content_type = json.loads(meta_path.read_text(encoding="utf-8")).get("contentType")
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0]
        return StoredObject(key=normalize_key(key), body=path.read_bytes(), content_type=content_type)

    def put_object(self, key: str, body: bytes, content_type: str | None = None) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(body)
        os.replace(tmp, path)
        meta_path = self._meta_path(key)
        if content_type:
            meta_path.parent.mkdir(parents=True, exist_ok=True)
            meta_path.write_text(json.dumps({"contentType": content_type}), encoding="utf-8")
        elif meta_path.exists():
            meta_path.unlink()
        logger.debug("Stored %s (%d bytes)", key, len(body))

    def delete_object(self, key: str) -> bool:
        path = self._path(key)
        if not path.is_file():
            return False
        path.unlink()
        meta_path = self._meta_path(key)
        if meta_path.exists():
            meta_path.unlink()
        self._prune_empty_dirs(path.parent)
        return True

    def _prune_empty_dirs(self, directory: Path) -> None:
        while directory != self.root and directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()
            directory = directory.parent

    def list_keys(self, prefix: str = "") -> list[str]:
        keys = []
        for path in self.root.rglob("*"):
            if not path.is_file():
                continue
            rel = path.relative_to(self.root).as_posix()
            if rel.startswith(f"{_META_DIR}/") or rel.endswith(".tmp"):
                continue
            if rel.startswith(prefix):
                keys.append(rel)
        return sorted(keys)


class InMemoryObjectStore(ObjectStore):
    """Dict-backed store for tests and dry runs."""

    def __init__(self) -> None:
        self._objects: dict[str, StoredObject] = {}

    def get_object(self, key: str) -> StoredObject | None:
        return self._objects.get(normalize_key(key))

    def put_object(self, key: str, body: bytes, content_type: str | None = None) -> None:
        key = normalize_key(key)
        self._objects[key] = StoredObject(key=key, body=bytes(body), content_type=content_type)

    def delete_object(self, key: str) -> bool:
        return self._objects.pop(normalize_key(key), None) is not None

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._objects if k.startswith(prefix))

"""Storage layout migrator with per-migration backup and rollback.

Every write a migration makes goes through the helpers on ``StorageMigration``:
overwritten or moved objects are first copied to ``backup/<migration>/<key>``
and newly created keys are remembered, so a failed migration can be undone
before the error propagates. Applied migrations are recorded in ``migrate.json``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from bundlerelay.errors import MigrationFailure
from bundlerelay.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

MIGRATION_RECORD_KEY = "migrate.json"
BACKUP_PREFIX = "backup/"


class StorageMigration(ABC):
    """Base class for one layout migration. Subclasses set ``name`` and implement migrate()."""

    name: str = ""

    def __init__(self) -> None:
        self.store: ObjectStore | None = None
        self.dry_run = False
        self._backups: dict[str, str] = {}
        self._created: list[str] = []

    def bind(self, store: ObjectStore, dry_run: bool = False) -> None:
        self.store = store
        self.dry_run = dry_run
        self._backups = {}
        self._created = []

    @property
    def _store(self) -> ObjectStore:
        if self.store is None:
            raise RuntimeError(f"Migration {self.name} is not bound to a store")
        return self.store

    # ── Read helpers ──────────────────────────────────────────────────────

    def get_keys(self, prefix: str = "") -> list[str]:
        """Keys under prefix, excluding backups and the migration record."""
        return [
            k
            for k in self._store.list_keys(prefix.lstrip("/"))
            if not k.startswith(BACKUP_PREFIX) and k != MIGRATION_RECORD_KEY
        ]

    def read_json(self, key: str) -> Any | None:
        obj = self._store.get_object(key)
        if obj is None:
            return None
        try:
            return json.loads(obj.body.decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            logger.error("Cannot parse JSON from %s: %s", key, e)
            return None

    # ── Write helpers ─────────────────────────────────────────────────────

    def backup(self, key: str) -> None:
        if self.dry_run:
            logger.info("[DRY RUN] Would back up %s", key)
            return
        if key in self._backups:
            return
        obj = self._store.get_object(key)
        if obj is None:
            logger.info("No existing object at %s to back up", key)
            return
        backup_key = f"{BACKUP_PREFIX}{self.name}/{key}"
        self._store.put_object(backup_key, obj.body, obj.content_type)
        self._backups[key] = backup_key
        logger.info("Backed up %s to %s", key, backup_key)

    def update(self, key: str, body: bytes, content_type: str | None = None) -> None:
        key = key.lstrip("/")
        if self.dry_run:
            logger.info("[DRY RUN] Would update %s (%d bytes)", key, len(body))
            return
        if self._store.exists(key):
            self.backup(key)
        else:
            self._created.append(key)
        self._store.put_object(key, body, content_type)
        logger.info("Updated %s", key)

    def move(self, source_key: str, dest_key: str) -> None:
        if self.dry_run:
            logger.info("[DRY RUN] Would move %s to %s", source_key, dest_key)
            return
        self.backup(source_key)
        if self._store.exists(dest_key):
            self.backup(dest_key)
        else:
            self._created.append(dest_key)
        self._store.copy_object(source_key, dest_key)
        self._store.delete_object(source_key)
        logger.info("Moved %s to %s", source_key, dest_key)

    def rollback(self) -> None:
        """Delete keys this migration created, then restore every backup."""
        logger.warning("Rolling back migration %s", self.name)
        for key in reversed(self._created):
            self._store.delete_object(key)
        for original_key, backup_key in self._backups.items():
            obj = self._store.get_object(backup_key)
            if obj is None:
                logger.error("Missing backup for %s at %s", original_key, backup_key)
                continue
            self._store.put_object(original_key, obj.body, obj.content_type)
            logger.info("Restored %s from %s", original_key, backup_key)
        logger.info("Rollback completed for migration %s", self.name)

    @abstractmethod
    def migrate(self) -> None:
        ...


class StorageMigrator:
    """Runs migrations in order, skipping ones already recorded in migrate.json."""

    def __init__(self, store: ObjectStore, dry_run: bool = False):
        self.store = store
        self.dry_run = dry_run
        self.records: list[dict[str, str]] = []

    def load_records(self) -> list[dict[str, str]]:
        obj = self.store.get_object(MIGRATION_RECORD_KEY)
        if obj is None:
            self.records = []
            return self.records
        try:
            records = json.loads(obj.body.decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            logger.error("Failed to parse %s: %s", MIGRATION_RECORD_KEY, e)
            records = []
        self.records = records if isinstance(records, list) else []
        return self.records

    def save_records(self) -> None:
        if self.dry_run:
            logger.info("[DRY RUN] Would save migration records: %s", self.records)
            return
        self.store.put_object(
            MIGRATION_RECORD_KEY,
            json.dumps(self.records, indent=2).encode("utf-8"),
            content_type="application/json",
        )

    def applied_names(self) -> set[str]:
        return {r.get("name", "") for r in self.records}

    def migrate(self, migrations: list[StorageMigration]) -> list[str]:
        """Apply pending migrations. Returns the names applied (or simulated in dry-run)."""
        self.load_records()
        applied: list[str] = []
        for migration in migrations:
            if migration.name in self.applied_names():
                logger.info("Migration %s already applied, skipping", migration.name)
                continue

            logger.info("Applying migration %s", migration.name)
            migration.bind(self.store, dry_run=self.dry_run)
            try:
                migration.migrate()
            except Exception as e:
                logger.error("Migration %s failed: %s. Rolling back.", migration.name, e)
                if not self.dry_run:
                    migration.rollback()
                raise MigrationFailure(migration.name, e) from e

            applied.append(migration.name)
            if self.dry_run:
                logger.info("[DRY RUN] Migration %s simulated", migration.name)
                continue
            self.records.append(
                {
                    "name": migration.name,
                    "appliedAt": datetime.now(timezone.utc).isoformat(),
                }
            )
            self.save_records()
            logger.info("Migration %s applied", migration.name)

        logger.info("%s", "[DRY RUN] No changes were applied" if self.dry_run else "All migrations applied")
        return applied

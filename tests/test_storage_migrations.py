"""Object store layout migrations."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from bundlerelay.errors import MigrationFailure
from bundlerelay.storage.migrations import ALL_MIGRATIONS, StorageMigrator
from bundlerelay.storage.migrations.m0001_flatten_platform_prefix import FlattenPlatformPrefix
from bundlerelay.storage.migrations.migrator import MIGRATION_RECORD_KEY, StorageMigration
from bundlerelay.storage.object_store import InMemoryObjectStore, LocalObjectStore
from tests.test_constants import bid


class _MoveThenFail(StorageMigration):
    name = "9999_move_then_fail"

    def migrate(self) -> None:
        self.move("a.json", "moved/a.json")
        self.update("b.json", b'{"v": 2}', content_type="application/json")
        self.update("new.json", b"{}", content_type="application/json")
        raise RuntimeError("boom")


class _WriteMarker(StorageMigration):
    name = "0002_write_marker"

    def migrate(self) -> None:
        self.update("marker.json", b"{}", content_type="application/json")


def _legacy_store() -> InMemoryObjectStore:
    store = InMemoryObjectStore()
    store.put_object(f"ios/{bid(1)}/bundle.zip", b"ios-zip", content_type="application/zip")
    store.put_object(f"android/{bid(2)}/bundle.zip", b"android-zip", content_type="application/zip")
    store.put_object(f"android/{bid(2)}/manifest.json", b"{}", content_type="application/json")
    store.put_object(
        "update.json",
        json.dumps(
            [{"id": bid(1), "platform": "ios", "fileUrl": "http://old/b.zip"}]
        ).encode("utf-8"),
        content_type="application/json",
    )
    return store


class TestFlattenPlatformPrefix:
    def test_moves_artifacts_and_rewrites_index(self) -> None:
        store = _legacy_store()
        applied = StorageMigrator(store).migrate([FlattenPlatformPrefix()])
        assert applied == ["0001_flatten_platform_prefix"]

        assert store.get_object(f"{bid(1)}/bundle.zip").body == b"ios-zip"
        assert store.get_object(f"{bid(2)}/bundle.zip").content_type == "application/zip"
        assert store.exists(f"{bid(2)}/manifest.json")
        assert not store.exists(f"ios/{bid(1)}/bundle.zip")

        index = json.loads(store.get_object("update.json").body)
        assert index == [{"id": bid(1), "platform": "ios", "channel": "production"}]

        backups = store.list_keys("backup/0001_flatten_platform_prefix/")
        assert f"backup/0001_flatten_platform_prefix/ios/{bid(1)}/bundle.zip" in backups
        assert "backup/0001_flatten_platform_prefix/update.json" in backups

    def test_records_and_skips_applied(self) -> None:
        store = _legacy_store()
        StorageMigrator(store).migrate(list(cls() for cls in ALL_MIGRATIONS))
        records = json.loads(store.get_object(MIGRATION_RECORD_KEY).body)
        assert [r["name"] for r in records] == ["0001_flatten_platform_prefix"]
        assert "appliedAt" in records[0]

        assert StorageMigrator(store).migrate([FlattenPlatformPrefix()]) == []

    def test_dry_run_changes_nothing(self) -> None:
        store = _legacy_store()
        before = store.list_keys()
        applied = StorageMigrator(store, dry_run=True).migrate([FlattenPlatformPrefix()])
        assert applied == ["0001_flatten_platform_prefix"]
        assert store.list_keys() == before

    def test_non_list_index_left_unchanged(self) -> None:
        store = InMemoryObjectStore()
        store.put_object("update.json", b'{"not": "a list"}', content_type="application/json")
        StorageMigrator(store).migrate([FlattenPlatformPrefix()])
        assert json.loads(store.get_object("update.json").body) == {"not": "a list"}


class TestRollback:
    def test_failed_migration_is_rolled_back(self) -> None:
        store = InMemoryObjectStore()
        store.put_object("a.json", b'{"v": 1}', content_type="application/json")
        store.put_object("b.json", b'{"v": 1}', content_type="application/json")

        with pytest.raises(MigrationFailure) as exc:
            StorageMigrator(store).migrate([_MoveThenFail()])
        assert exc.value.migration_name == "9999_move_then_fail"
        assert "boom" in str(exc.value)

        assert store.get_object("a.json").body == b'{"v": 1}'
        assert store.get_object("b.json").body == b'{"v": 1}'
        assert not store.exists("moved/a.json")
        assert not store.exists("new.json")
        assert not store.exists(MIGRATION_RECORD_KEY)

    def test_earlier_migrations_stay_recorded(self) -> None:
        store = InMemoryObjectStore()
        store.put_object("a.json", b"{}", content_type="application/json")
        with pytest.raises(MigrationFailure):
            StorageMigrator(store).migrate([_WriteMarker(), _MoveThenFail()])
        records = json.loads(store.get_object(MIGRATION_RECORD_KEY).body)
        assert [r["name"] for r in records] == ["0002_write_marker"]
        assert store.exists("marker.json")

    def test_unbound_migration(self) -> None:
        with pytest.raises(RuntimeError):
            _WriteMarker().get_keys()


class TestScript:
    def test_main_runs_against_root(self, tmp_path, capsys) -> None:
        from scripts.run_storage_migrations import main

        store = LocalObjectStore(tmp_path)
        store.put_object(f"ios/{bid(1)}/bundle.zip", b"zip", content_type="application/zip")
        assert main(["--root", str(tmp_path)]) == 0
        assert "applied=0001_flatten_platform_prefix" in capsys.readouterr().out
        assert store.exists(f"{bid(1)}/bundle.zip")

    def test_main_reports_failure(self, tmp_path, capsys) -> None:
        from scripts import run_storage_migrations

        with patch.object(run_storage_migrations, "ALL_MIGRATIONS", [_MoveThenFail]):
            assert run_storage_migrations.main(["--root", str(tmp_path)]) == 1
        assert "ERROR: Migration 9999_move_then_fail failed" in capsys.readouterr().err

"""Object store layout migrations."""

from bundlerelay.storage.migrations.m0001_flatten_platform_prefix import FlattenPlatformPrefix
from bundlerelay.storage.migrations.migrator import StorageMigration, StorageMigrator

# Applied in order by scripts/run_storage_migrations.py
ALL_MIGRATIONS: list[type[StorageMigration]] = [FlattenPlatformPrefix]

__all__ = ["ALL_MIGRATIONS", "FlattenPlatformPrefix", "StorageMigration", "StorageMigrator"]

#!/usr/bin/env python3
"""Apply pending object store layout migrations.

Usage:
    python scripts/run_storage_migrations.py [--dry-run] [--root ./storage]

Applied migrations are recorded in migrate.json at the store root.
Exits 0 on success, 1 on failure (the failing migration is rolled back).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from bundlerelay.config import get_settings
from bundlerelay.errors import MigrationFailure
from bundlerelay.storage.migrations import ALL_MIGRATIONS, StorageMigrator
from bundlerelay.storage.object_store import LocalObjectStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run BundleRelay storage migrations")
    parser.add_argument("--dry-run", action="store_true", help="Log changes without writing")
    parser.add_argument("--root", default=None, help="Object store root (default: STORAGE_ROOT)")
    args = parser.parse_args(argv)

    store = LocalObjectStore(args.root or get_settings().storage_root)
    migrator = StorageMigrator(store, dry_run=args.dry_run)
    try:
        applied = migrator.migrate([cls() for cls in ALL_MIGRATIONS])
    except MigrationFailure as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(f"applied={','.join(applied) or '-'} dry_run={args.dry_run}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

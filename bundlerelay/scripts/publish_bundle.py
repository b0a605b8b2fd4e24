"""Publish a bundle artifact to the object store and the bundles table.

Usage:
    python -m bundlerelay.scripts.publish_bundle --file dist/bundle.zip --platform ios \
        --target-app-version "1.x.x" [--channel production] [--private-key keys/private.pem]
"""

from __future__ import annotations

import argparse
import sys

from pydantic import ValidationError

from bundlerelay.config import get_settings
from bundlerelay.db.session import SessionLocal
from bundlerelay.errors import SigningError
from bundlerelay.services.bundle_repository import BundleConflictError
from bundlerelay.services.publisher import publish_bundle
from bundlerelay.services.signing import load_private_key
from bundlerelay.storage.object_store import LocalObjectStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Publish a BundleRelay bundle")
    parser.add_argument("--file", required=True, help="Path to the bundle archive")
    parser.add_argument("--platform", required=True, choices=["ios", "android"])
    strategy = parser.add_mutually_exclusive_group(required=True)
    strategy.add_argument("--target-app-version", help="Semver range of native app versions")
    strategy.add_argument("--fingerprint-hash", help="Native build fingerprint")
    parser.add_argument("--channel", default=None, help="Release channel (default: DEFAULT_CHANNEL)")
    parser.add_argument("--private-key", help="PEM private key used to sign the file hash")
    parser.add_argument("--message", help="Release note shown to the client")
    parser.add_argument("--git-commit-hash")
    parser.add_argument("--force-update", action="store_true")
    parser.add_argument("--rollout", type=int, default=100, help="Rollout percentage 0-100")
    parser.add_argument("--device-id", action="append", dest="device_ids", help="Target device id (repeatable)")
    parser.add_argument("--disabled", action="store_true", help="Publish without enabling")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    private_key = None
    if args.private_key:
        try:
            private_key = load_private_key(args.private_key)
        except SigningError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    store = LocalObjectStore(settings.storage_root)
    db = SessionLocal()
    try:
        result = publish_bundle(
            db,
            store,
            args.file,
            platform=args.platform,
            channel=args.channel or settings.default_channel,
            target_app_version=args.target_app_version,
            fingerprint_hash=args.fingerprint_hash,
            private_key_pem=private_key,
            message=args.message,
            git_commit_hash=args.git_commit_hash,
            should_force_update=args.force_update,
            rollout_percentage=args.rollout,
            target_device_ids=args.device_ids,
            enabled=not args.disabled,
        )
    except (OSError, ValidationError, BundleConflictError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()

    bundle = result.bundle
    print(
        f"Published bundle {bundle.id} platform={bundle.platform} channel={bundle.channel} "
        f"file_hash={bundle.file_hash} signed={result.manifest['signature'] is not None}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

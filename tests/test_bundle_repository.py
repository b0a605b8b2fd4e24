"""Bundle repository writes."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bundlerelay.schemas.bundle import BundleUpdate
from bundlerelay.services.bundle_repository import get_bundle, update_bundle
from tests.test_constants import bid


class TestUpdateBundle:
    def test_applies_only_set_fields(self, db: Session, add_bundle) -> None:
        add_bundle(bid(1), message="keep")
        row = update_bundle(db, bid(1), BundleUpdate(rollout_percentage=20))
        assert row is not None
        assert (row.rollout_percentage, row.message) == (20, "keep")

    def test_missing_bundle(self, db: Session) -> None:
        assert update_bundle(db, bid(9), BundleUpdate(enabled=False)) is None

    def test_explicit_null_rejected_by_schema(self) -> None:
        with pytest.raises(ValueError, match="may not be null"):
            BundleUpdate.model_validate({"enabled": None})

    def test_failed_commit_rolls_back(self, db: Session, add_bundle) -> None:
        add_bundle(bid(1))
        # Skips validation so the NOT NULL constraint is what rejects the write
        patch = BundleUpdate.model_construct(enabled=None)
        with pytest.raises(IntegrityError):
            update_bundle(db, bid(1), patch)
        assert get_bundle(db, bid(1)).enabled is True
        assert update_bundle(db, bid(1), BundleUpdate(enabled=False)).enabled is False

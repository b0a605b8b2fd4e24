"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from tests.test_constants import (
    TEST_ADMIN_TOKEN,
    TEST_FILE_HASH,
    TEST_JWT_SECRET,
    TEST_PUBLIC_BASE_URL,
)

# Force an embedded test DB; don't inherit from .env
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET"] = TEST_JWT_SECRET
os.environ["ADMIN_TOKEN"] = TEST_ADMIN_TOKEN
os.environ["PUBLIC_BASE_URL"] = TEST_PUBLIC_BASE_URL
os.environ["RESOLUTION_MODE"] = "sql"
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="bundlerelay-test-"))


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    from bundlerelay.main import app

    return TestClient(app)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test, schema from the models."""
    from bundlerelay.db.session import Base
    import bundlerelay.models  # noqa: F401

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = Session(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def store():
    """In-memory object store."""
    from bundlerelay.storage.object_store import InMemoryObjectStore

    return InMemoryObjectStore()


@pytest.fixture
def client_with_db(db: Session, store) -> Generator[TestClient, None, None]:
    """TestClient with get_db and the object store overridden to the test fixtures."""
    from bundlerelay.api.deps import get_object_store
    from bundlerelay.db.session import get_db
    from bundlerelay.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: store
    c = TestClient(app)
    yield c
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_object_store, None)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": TEST_ADMIN_TOKEN}


def _bundle_defaults(bundle_id: str, overrides: dict) -> dict:
    values = {
        "id": bundle_id,
        "platform": "ios",
        "channel": "production",
        "target_app_version": "1.0.0",
        "fingerprint_hash": None,
        "enabled": True,
        "should_force_update": False,
        "rollout_percentage": 100,
        "target_device_ids": None,
        "storage_uri": f"storage://{bundle_id}/bundle.zip",
        "file_hash": TEST_FILE_HASH,
        "signature": None,
        "message": f"bundle {bundle_id[-4:]}",
        "git_commit_hash": None,
        "bundle_metadata": None,
    }
    values.update(overrides)
    return values


@pytest.fixture
def make_bundle() -> Callable[..., object]:
    """Build a transient Bundle with every column set (ORM defaults only apply on flush)."""
    from bundlerelay.models import Bundle

    def _make(bundle_id: str, **overrides) -> Bundle:
        return Bundle(**_bundle_defaults(bundle_id, overrides))

    return _make


@pytest.fixture
def add_bundle(db: Session, make_bundle) -> Callable[..., object]:
    """Insert a Bundle into the test db and return it."""

    def _add(bundle_id: str, **overrides):
        row = make_bundle(bundle_id, **overrides)
        db.add(row)
        db.commit()
        return row

    return _add

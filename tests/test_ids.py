"""UUIDv7 bundle ids."""

from __future__ import annotations

import time
import uuid

from bundlerelay.services.ids import uuid7


def test_uuid7_format() -> None:
    value = uuid.UUID(uuid7())
    assert value.version == 7
    assert value.variant == uuid.RFC_4122


def test_uuid7_is_strictly_increasing() -> None:
    ids = [uuid7() for _ in range(5000)]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_uuid7_timestamp() -> None:
    before = time.time_ns() // 1_000_000
    ms = uuid.UUID(uuid7()).int >> 80
    after = time.time_ns() // 1_000_000
    # Counter overflow may borrow a few milliseconds from the future
    assert before <= ms <= after + 50

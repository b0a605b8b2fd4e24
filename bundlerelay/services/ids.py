"""Time-ordered bundle ids (UUIDv7, RFC 9562).

48-bit Unix millisecond timestamp, then a 12-bit counter that increments for
ids created in the same millisecond, then 62 random bits. String order of the
canonical form matches creation order within one process.
"""

from __future__ import annotations

import os
import threading
import time
import uuid

_lock = threading.Lock()
_last_ms = 0
_counter = 0

_COUNTER_MAX = 0xFFF


def uuid7() -> str:
    """Return a new UUIDv7 string, strictly greater than the previous one from this process."""
    global _last_ms, _counter
    with _lock:
        now_ms = time.time_ns() // 1_000_000
        if now_ms > _last_ms:
            _last_ms = now_ms
            _counter = int.from_bytes(os.urandom(2), "big") & 0x3FF
        else:
            # Same millisecond or clock went backwards: stay on the last timestamp
            _counter += 1
            if _counter > _COUNTER_MAX:
                _last_ms += 1
                _counter = 0
        ms = _last_ms
        seq = _counter

    rand_b = int.from_bytes(os.urandom(8), "big") & ((1 << 62) - 1)
    value = (ms & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76
    value |= seq << 64
    value |= 0b10 << 62
    value |= rand_b
    return str(uuid.UUID(int=value))

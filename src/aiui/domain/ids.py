"""Trace id generation and validation.

Format: ``trace-<YYYYMMDDTHHMMSSffffff>-<counter>-<8 hex chars>``.
The counter is process-wide and monotonic; the random suffix keeps ids
distinct across processes.

INVARIANT: An id is never reused within a process.
"""

from __future__ import annotations

import itertools
import re
import secrets
import threading
from datetime import UTC, datetime

TRACE_PREFIX = "trace-"
TRACE_ID_PATTERN: re.Pattern[str] = re.compile(r"^trace-\d{8}T\d{12}-\d{6,}-[0-9a-f]{8}$")

_counter = itertools.count(1)
_lock = threading.Lock()


def generate_trace_id(now: datetime | None = None) -> str:
    """Return a fresh, collision-resistant trace id."""
    with _lock:
        seq = next(_counter)
    stamp = (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%S%f")
    return f"{TRACE_PREFIX}{stamp}-{seq:06d}-{secrets.token_hex(4)}"


def validate_trace_id(trace_id: str) -> bool:
    """Check whether *trace_id* has the shape produced by :func:`generate_trace_id`."""
    return TRACE_ID_PATTERN.match(trace_id) is not None

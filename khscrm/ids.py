# khscrm/ids.py
"""
Row identifiers and timestamps.

Ids look like ``cust-1758094030880-u886npesg``: prefix, epoch milliseconds,
and nine random base-36 characters. Nothing is persisted between calls, so
uniqueness rests on the millisecond clock plus 36**9 (~1e14) random suffixes
per millisecond. That is negligible collision risk for a single writer
inserting rows at human pace; the primary key constraint is the backstop.
"""
from __future__ import annotations

import secrets
import time
from datetime import datetime, timezone

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_SUFFIX_LEN = 9


def new_id(prefix: str = "id") -> str:
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(_SUFFIX_LEN))
    return f"{prefix}-{millis}-{suffix}"


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-09-17T07:27:41.607Z"""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

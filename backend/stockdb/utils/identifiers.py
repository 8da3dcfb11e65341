from __future__ import annotations

import os
import time
import uuid
from datetime import datetime
from typing import Optional


def generate_uuid7() -> str:
    """
    Generate a UUIDv7 string (time-ordered).

    UUIDv7 layout per draft:
    - 48-bit Unix timestamp in milliseconds
    - 4-bit version (0b0111)
    - 74-bit randomness
    """
    ts_ms = int(time.time() * 1000)
    ts_bytes = ts_ms.to_bytes(6, "big", signed=False)
    rand_bytes = os.urandom(10)
    raw = bytearray(ts_bytes + rand_bytes)
    raw[6] = (raw[6] & 0x0F) | 0x70
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))


MOVEMENT_CODE_PREFIX = {
    "in": "IN",
    "out": "OUT",
}


def movement_display_code(movement_type: str, movement_id: str, created_at: Optional[datetime]) -> str:
    """
    Short human code for a ledger row, e.g. 'IN-0314-A1B2'.

    UUIDv7 ids lead with the timestamp, so the tail uses the last four
    (random) hex digits rather than the first four.
    """
    prefix = MOVEMENT_CODE_PREFIX.get(movement_type, "MOV")
    stamp = created_at or datetime.utcnow()
    base = str(movement_id or "").replace("-", "")[-4:].upper()
    return f"{prefix}-{stamp.month:02d}{stamp.day:02d}-{base}"

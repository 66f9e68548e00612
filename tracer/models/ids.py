"""Document-style object identifiers.

Ids are 24 lowercase hex characters: a 4-byte big-endian creation timestamp
followed by 8 random bytes, so they sort roughly by creation time.
"""

from __future__ import annotations

import re
import secrets
import time

OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"

_OBJECT_ID_RE = re.compile(OBJECT_ID_PATTERN)


def new_object_id() -> str:
    """Generate a new 24-character hex identifier."""
    timestamp = int(time.time()).to_bytes(4, "big")
    return (timestamp + secrets.token_bytes(8)).hex()


def is_object_id(value: object) -> bool:
    """True if value is a well-formed 24-character hex identifier."""
    return isinstance(value, str) and _OBJECT_ID_RE.match(value) is not None

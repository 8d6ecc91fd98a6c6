from __future__ import annotations

import re
import time

__all__ = (
    "make_safe_name",
    "unix_time",
)

_UNSAFE_NAME_CHARS = re.compile(r"[^a-z0-9]")


def make_safe_name(name: str) -> str:
    """Return a name safe for usage as an id (case & whitespace insensitive)."""
    return _UNSAFE_NAME_CHARS.sub("", name.lower())


def unix_time() -> int:
    return int(time.time())

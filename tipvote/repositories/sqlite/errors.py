"""Translate sqlite3 driver errors into the store error taxonomy.

Classification uses the extended result code name sqlite3 attaches to every
error, never the message text.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from tipvote.domain.errors import ConstraintViolation, StoreError, TransientStoreError

_UNIQUE_CODES = {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
_TRANSIENT_PREFIXES = ("SQLITE_BUSY", "SQLITE_LOCKED")


def classify(exc: sqlite3.Error, constraint_key: Optional[str] = None) -> Optional[StoreError]:
    name = str(getattr(exc, "sqlite_errorname", "") or "")
    if name in _UNIQUE_CODES:
        return ConstraintViolation(constraint_key or name, str(exc))
    if name.startswith(_TRANSIENT_PREFIXES):
        return TransientStoreError(str(exc))
    return None


@contextmanager
def translate_errors(constraint_key: Optional[str] = None) -> Iterator[None]:
    """Re-raise classified sqlite3 errors as store errors; others pass through."""
    try:
        yield
    except sqlite3.Error as exc:
        mapped = classify(exc, constraint_key)
        if mapped is None:
            raise
        raise mapped from exc

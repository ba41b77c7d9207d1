"""Field identifiers: hashing of field names and the global name registry."""

from __future__ import annotations

import threading
from typing import Optional, Union

Name = Union[str, bytes]

_lock = threading.Lock()
_names: dict[int, Name] = {}


class FieldConflictError(Exception):
    """Two different names hash to the same field identifier."""

    def __init__(self, existing: Name, name: Name) -> None:
        super().__init__(f"Field conflict between {_text(existing)} and {_text(name)}")
        self.existing = existing
        self.name = name


def _encode(name: Name) -> bytes:
    return name.encode("utf-8") if isinstance(name, str) else bytes(name)


def _text(name: Name) -> str:
    return name if isinstance(name, str) else name.decode("utf-8", "replace")


def hash_field(name: Name) -> int:
    """Return the field identifier of ``name`` (a 31-bit signed hash)."""
    acc = 0
    for byte in _encode(name):
        acc = (223 * acc + byte) & 0x7FFFFFFF
        if acc & 0x40000000:
            acc -= 0x80000000
    return acc


def field_id(name: Name) -> int:
    """Return the identifier of ``name``, registering the name.

    Raises FieldConflictError when another name already owns the identifier.
    """
    fid = hash_field(name)
    encoded = _encode(name)
    with _lock:
        existing = _names.get(fid)
        if existing is None:
            _names[fid] = name
            return fid
    if _encode(existing) != encoded:
        raise FieldConflictError(existing, name)
    return fid


def field_name(fid: int) -> Optional[Name]:
    """Return the name registered for ``fid``, or None."""
    return _names.get(fid)
"""
Host-supplied services the engine depends on.

The store never reads the wall clock or mints identifiers itself. Both are
injected so hosts can plug in their own sources and tests can use
deterministic fakes.
"""

import uuid
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of ISO-8601 timestamps."""

    def now(self) -> str:
        ...


@runtime_checkable
class IdGenerator(Protocol):
    """Source of opaque unique identifiers."""

    def new_id(self) -> str:
        ...


class SystemClock:
    """UTC wall clock, formatted like JavaScript's Date.toISOString()."""

    def now(self) -> str:
        stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        return stamp.replace("+00:00", "Z")


class UuidIdGenerator:
    """Random UUID4 identifiers."""

    def new_id(self) -> str:
        return str(uuid.uuid4())

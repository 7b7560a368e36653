"""
Identifier generation (``mfg_kernel.domain.identifiers``).

Responsibility
--------------
Injectable source of new identifiers for history entries, comments,
orders and external jobs.  Services receive an ``IdGenerator`` through
their constructor, the same way they receive a ``Clock``, so that every
command is deterministic under test.

Architecture position
---------------------
**Kernel domain layer**.  ``UuidIdGenerator`` is the only implementation
that touches a source of randomness.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import uuid4


class IdGenerator(ABC):
    """Produces opaque, prefixed identifiers."""

    @abstractmethod
    def new_id(self, prefix: str) -> str:
        """Return a fresh identifier such as ``hst-...``."""
        ...


class UuidIdGenerator(IdGenerator):
    """Production generator backed by ``uuid4``."""

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid4().hex}"


class SequentialIdGenerator(IdGenerator):
    """Test generator producing ``<prefix>-0001``, ``<prefix>-0002``, ...

    The counter is shared across prefixes so that ids stay globally unique
    within one generator.
    """

    def __init__(self, start: int = 1):
        self._next = start

    def new_id(self, prefix: str) -> str:
        value = self._next
        self._next += 1
        return f"{prefix}-{value:04d}"

"""
Core value types (``mfg_kernel.domain.values``).

Responsibility
--------------
Status enums for orders and external jobs, priority, roles, readiness
gates and the acting-user descriptor.  Every other layer speaks in these
types.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Status coercion from strings is strict: unknown values raise
  ``UnknownStatusError`` instead of being mapped to a default.
* ``Actor`` is frozen; the core never changes who is acting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from mfg_kernel.exceptions import UnknownStatusError


class OrderStatus(str, Enum):
    """Order lifecycle states."""

    DRAFT = "draft"
    READY_FOR_ENGINEERING = "ready_for_engineering"
    IN_ENGINEERING = "in_engineering"
    ENGINEERING_BLOCKED = "engineering_blocked"
    READY_FOR_PRODUCTION = "ready_for_production"
    IN_PRODUCTION = "in_production"

    @classmethod
    def coerce(cls, value: "OrderStatus | str") -> "OrderStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownStatusError(str(value), kind="order") from None


class ExternalJobStatus(str, Enum):
    """External (outsourced) job lifecycle states."""

    REQUESTED = "requested"
    ORDERED = "ordered"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    APPROVED = "approved"
    CANCELLED = "cancelled"

    @classmethod
    def coerce(cls, value: "ExternalJobStatus | str") -> "ExternalJobStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownStatusError(str(value), kind="external job") from None


# External jobs in these states are no longer waiting on the partner.
CLOSED_EXTERNAL_JOB_STATUSES: frozenset[ExternalJobStatus] = frozenset({
    ExternalJobStatus.DELIVERED,
    ExternalJobStatus.APPROVED,
    ExternalJobStatus.CANCELLED,
})


class Priority(str, Enum):
    """Order priority.  Metadata only; no workflow effect."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Role(str, Enum):
    """Roles that act on orders."""

    SALES = "Sales"
    ENGINEERING = "Engineering"
    PRODUCTION = "Production"
    ADMIN = "Admin"


class Gate(str, Enum):
    """Forward transitions that require a readiness check."""

    ENGINEERING = "engineering"
    PRODUCTION = "production"

    @property
    def target_status(self) -> OrderStatus:
        if self is Gate.ENGINEERING:
            return OrderStatus.READY_FOR_ENGINEERING
        return OrderStatus.READY_FOR_PRODUCTION

    @classmethod
    def for_target(cls, status: OrderStatus) -> "Gate | None":
        """Return the gate guarding ``status``, or None if it is not gated."""
        for gate in cls:
            if gate.target_status == status:
                return gate
        return None


@dataclass(frozen=True)
class Actor:
    """The acting user: identity plus the role they are acting under.

    ``is_admin`` mirrors the admin flag on user profiles; it grants the same
    assignment rights as the Admin role without changing ``role``.
    """

    actor_id: str
    name: str
    role: str
    is_admin: bool = False

    def has_role(self, *roles: str) -> bool:
        """True if the actor acts under any of ``roles``."""
        return self.role in {str(r.value) if isinstance(r, Role) else r for r in roles}

    @property
    def is_administrator(self) -> bool:
        return self.is_admin or self.role == Role.ADMIN.value

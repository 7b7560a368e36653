"""
Command outcomes and status history (``mfg_kernel.domain.outcomes``).

Responsibility
--------------
Pure value objects describing what a command produced: the appended
status history entry on success, or a typed ``Rejection`` carrying the
unmet criteria on failure.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  May import
only from ``domain/values``, ``domain/workflow`` and ``exceptions``.

Invariants enforced
-------------------
* History is append-only: ``append_history`` returns a new tuple with one
  more entry and never touches existing entries.
* The most recent entry's status equals the owner's current status
  (checked by ``verify_history``).
* A ``CommandResult`` is either successful (no rejection) or rejected (no
  history entry), never both.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from mfg_kernel.domain.values import Gate
from mfg_kernel.domain.workflow import Transition
from mfg_kernel.exceptions import CommandRejectedError, HistoryIntegrityError


# =========================================================================
# Status history
# =========================================================================


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One immutable status change record."""

    entry_id: str
    status: str
    changed_by: str
    changed_by_role: str
    changed_at: datetime


def append_history(
    history: tuple[StatusHistoryEntry, ...],
    entry: StatusHistoryEntry,
) -> tuple[StatusHistoryEntry, ...]:
    """Return ``history`` with ``entry`` appended as the most recent record."""
    return (*history, entry)


def verify_history(
    current_status: str,
    history: tuple[StatusHistoryEntry, ...],
) -> None:
    """Raise ``HistoryIntegrityError`` if the history tail disagrees with status.

    An empty history is valid: orders are created without an entry and gain
    their first one on the first transition.
    """
    if not history:
        return
    last = history[-1].status
    if last != current_status:
        raise HistoryIntegrityError(str(current_status), str(last))


# =========================================================================
# Rejections
# =========================================================================


class RejectionKind(str, Enum):
    """Why a command was refused."""

    UNAUTHORIZED = "unauthorized"
    NOT_READY = "not_ready"
    INSUFFICIENT_ATTACHMENTS = "insufficient_attachments"
    INVALID_STATE = "invalid_state"

    @property
    def code(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class ReadinessMissing:
    """The unmet criteria of a readiness gate."""

    checklist: tuple[str, ...] = ()
    attachments_short: int = 0
    comment_missing: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.checklist and self.attachments_short == 0 and not self.comment_missing


@dataclass(frozen=True)
class ReadinessReport:
    """Result of evaluating one gate against an order snapshot."""

    gate: Gate
    ready: bool
    missing: ReadinessMissing = ReadinessMissing()


@dataclass(frozen=True)
class Rejection:
    """A refused command.  Returned, never raised.

    ``missing`` is set for NOT_READY; ``attachments_short`` for
    INSUFFICIENT_ATTACHMENTS; ``required_roles`` for UNAUTHORIZED when the
    refusal is role-based.
    """

    kind: RejectionKind
    reason: str
    missing: ReadinessMissing | None = None
    attachments_short: int = 0
    required_roles: tuple[str, ...] = ()

    @property
    def code(self) -> str:
        return self.kind.code

    @classmethod
    def unauthorized(cls, reason: str, required_roles: tuple[str, ...] = ()) -> "Rejection":
        return cls(RejectionKind.UNAUTHORIZED, reason, required_roles=required_roles)

    @classmethod
    def invalid_state(cls, reason: str) -> "Rejection":
        return cls(RejectionKind.INVALID_STATE, reason)

    @classmethod
    def not_ready(cls, report: ReadinessReport) -> "Rejection":
        return cls(
            RejectionKind.NOT_READY,
            f"Gate '{report.gate.value}' not satisfied",
            missing=report.missing,
        )

    @classmethod
    def insufficient_attachments(cls, target_status: str, short: int) -> "Rejection":
        return cls(
            RejectionKind.INSUFFICIENT_ATTACHMENTS,
            f"Add at least {short} more attachment(s) before setting status '{target_status}'",
            attachments_short=short,
        )


# =========================================================================
# Results
# =========================================================================


@dataclass(frozen=True)
class TransitionResult:
    """Result of asking the workflow executor whether a transition may fire."""

    success: bool
    new_state: str | None = None
    transition: Transition | None = None
    rejection: Rejection | None = None
    reason: str = ""


T = TypeVar("T")


@dataclass(frozen=True)
class CommandResult(Generic[T]):
    """Outcome of a core command.

    ``snapshot`` is the new snapshot on success and the untouched input on
    rejection, so callers can always re-render from it.
    """

    snapshot: T
    rejection: Rejection | None = None
    history_entry: StatusHistoryEntry | None = None

    @property
    def success(self) -> bool:
        return self.rejection is None

    def unwrap(self) -> T:
        """Return the snapshot, or raise ``CommandRejectedError``."""
        if self.rejection is not None:
            raise CommandRejectedError(
                self.rejection.code, self.rejection.reason, self.rejection
            )
        return self.snapshot

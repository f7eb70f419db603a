from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base class for reservation rule violations."""


class DuplicateSlotError(DomainError):
    """The slot already holds a reserved record."""


class NoActiveReservationError(DomainError):
    """Waiting was requested for a slot nobody has reserved."""


class AlreadyReservedError(DomainError):
    """The member already holds the slot's reservation."""


class DuplicateWaitingError(DomainError):
    """The member is already queued for the slot."""


class NotFoundError(DomainError):
    """No record matches the given id."""


class ReferenceNotFoundError(NotFoundError):
    """The member, theme or time a reservation points at does not exist."""


class ConflictError(DomainError):
    """The slot gained a reserved record before a waiting record could be approved."""


class StoreConflictError(Exception):
    """The store refused a write because it would break a unique constraint."""

    def __init__(self, constraint: Optional[str] = None) -> None:
        super().__init__(f"unique constraint violated: {constraint or 'unknown'}")
        self.constraint = constraint

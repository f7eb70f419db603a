from dataclasses import dataclass

from ..models import ReservationStatus
from .errors import (
    AlreadyReservedError,
    ConflictError,
    DuplicateSlotError,
    DuplicateWaitingError,
    NoActiveReservationError,
    NotFoundError,
)


@dataclass(frozen=True)
class SlotSnapshot:
    reserved_count: int
    member_holds_reservation: bool = False
    member_is_waiting: bool = False


def validate_reservation(snapshot: SlotSnapshot) -> None:
    """A slot takes a new reservation only while nobody holds it."""
    if snapshot.reserved_count >= 1:
        raise DuplicateSlotError("slot already reserved")


def validate_waiting(snapshot: SlotSnapshot) -> None:
    """
    Pure validation for joining a slot's waitlist.
    Checks run in a fixed order; callers map the error kind to a message, so the
    first failing rule must win.
    """
    if snapshot.reserved_count == 0:
        raise NoActiveReservationError("slot has no reservation to wait for")
    if snapshot.member_holds_reservation:
        raise AlreadyReservedError("member already reserved this slot")
    if snapshot.member_is_waiting:
        raise DuplicateWaitingError("member is already waiting for this slot")


def validate_approval(status: ReservationStatus, *, slot_reserved: bool) -> None:
    if status != ReservationStatus.WAITING:
        raise NotFoundError("waiting not found")
    if slot_reserved:
        raise ConflictError("slot already reserved")

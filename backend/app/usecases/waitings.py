import logging

from ..domain.errors import (
    AlreadyReservedError,
    ConflictError,
    DuplicateWaitingError,
    NotFoundError,
    StoreConflictError,
)
from ..domain.repositories import ReservationRepository
from ..domain.services import SlotSnapshot, validate_approval, validate_waiting
from ..domain.values import SlotKey
from ..models import UQ_MEMBER_SLOT, Reservation, ReservationStatus
from .reservations import ensure_references

logger = logging.getLogger(__name__)


async def create_waiting(
    res_repo: ReservationRepository,
    *,
    member_id: int,
    slot: SlotKey,
) -> Reservation:
    await ensure_references(res_repo, member_id=member_id, slot=slot)
    snapshot = SlotSnapshot(
        reserved_count=await res_repo.count_reserved(slot),
        member_holds_reservation=await res_repo.exists_for_member(slot, member_id, ReservationStatus.RESERVED),
        member_is_waiting=await res_repo.exists_for_member(slot, member_id, ReservationStatus.WAITING),
    )
    validate_waiting(snapshot)

    try:
        return await res_repo.create(member_id=member_id, slot=slot, status=ReservationStatus.WAITING)
    except StoreConflictError as exc:
        if exc.constraint != UQ_MEMBER_SLOT:
            raise
        # Lost a race with the same member's other request; report what they now hold.
        if await res_repo.exists_for_member(slot, member_id, ReservationStatus.RESERVED):
            raise AlreadyReservedError("member already reserved this slot") from exc
        raise DuplicateWaitingError("member is already waiting for this slot") from exc


async def approve_waiting(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
) -> Reservation:
    waiting = await res_repo.get_for_update(reservation_id)
    if waiting is None:
        raise NotFoundError("waiting not found")
    slot = SlotKey.of(waiting)
    validate_approval(waiting.status, slot_reserved=await res_repo.exists_reserved(slot))

    try:
        return await res_repo.promote(waiting)
    except StoreConflictError as exc:
        logger.error(
            "approval of waiting %s lost a race for slot %s: slot already reserved",
            reservation_id,
            slot,
        )
        raise ConflictError("slot already reserved") from exc


async def reject_waiting(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
) -> Reservation:
    waiting = await res_repo.get_for_update(reservation_id)
    if waiting is None:
        raise NotFoundError("waiting not found")
    await res_repo.delete(waiting)
    return waiting


async def find_waitings(res_repo: ReservationRepository) -> list[Reservation]:
    return list(await res_repo.list_by_status(ReservationStatus.WAITING))

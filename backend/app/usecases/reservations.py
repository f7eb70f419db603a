from ..domain.errors import (
    DuplicateSlotError,
    DuplicateWaitingError,
    NotFoundError,
    ReferenceNotFoundError,
    StoreConflictError,
)
from ..domain.repositories import ReservationRepository
from ..domain.services import SlotSnapshot, validate_reservation
from ..domain.values import ReservationFilter, SlotKey
from ..models import UQ_ACTIVE_SLOT, UQ_MEMBER_SLOT, Reservation, ReservationStatus


async def ensure_references(res_repo: ReservationRepository, *, member_id: int, slot: SlotKey) -> None:
    missing = await res_repo.missing_reference(member_id=member_id, slot=slot)
    if missing is not None:
        raise ReferenceNotFoundError(f"{missing} not found")


async def create_reservation(
    res_repo: ReservationRepository,
    *,
    member_id: int,
    slot: SlotKey,
) -> Reservation:
    await ensure_references(res_repo, member_id=member_id, slot=slot)
    reserved = await res_repo.count_reserved(slot)
    validate_reservation(SlotSnapshot(reserved_count=reserved))

    try:
        return await res_repo.create(member_id=member_id, slot=slot, status=ReservationStatus.RESERVED)
    except StoreConflictError as exc:
        if exc.constraint == UQ_ACTIVE_SLOT:
            raise DuplicateSlotError("slot already reserved") from exc
        # The slot is free but the member still queues on it (nobody was promoted).
        if exc.constraint == UQ_MEMBER_SLOT:
            raise DuplicateWaitingError("member is already waiting for this slot") from exc
        raise


async def cancel_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
) -> Reservation:
    """Delete a reserved or waiting record. Waiting members are never promoted here."""
    reservation = await res_repo.get_for_update(reservation_id)
    if reservation is None:
        raise NotFoundError("reservation not found")
    await res_repo.delete(reservation)
    return reservation


async def get_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
) -> Reservation:
    reservation = await res_repo.get(reservation_id)
    if reservation is None:
        raise NotFoundError("reservation not found")
    return reservation


async def find_all(res_repo: ReservationRepository) -> list[Reservation]:
    return list(await res_repo.list_all())


async def find_all_by(
    res_repo: ReservationRepository,
    *,
    criteria: ReservationFilter,
) -> list[Reservation]:
    rows = await res_repo.list_filtered(
        theme_id=criteria.theme_id,
        member_id=criteria.member_id,
        date_from=criteria.date_from,
        date_to=criteria.date_to,
        status=ReservationStatus.RESERVED,
    )
    return list(rows)


async def find_my_reservations(
    res_repo: ReservationRepository,
    *,
    member_id: int,
) -> list[tuple[Reservation, int]]:
    """Return the member's records paired with their waitlist rank (0 when reserved)."""
    return list(await res_repo.list_by_member_with_rank(member_id))

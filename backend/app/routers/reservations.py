from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_member, get_session
from ..domain.errors import DomainError
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..models import Member
from ..schemas import MyReservationRead, ReservationCreate, ReservationRead
from ..usecases import reservations as reservation_usecase
from .common import audit_reservation, ensure_owner, raise_http

router = APIRouter(prefix="", tags=["reservations"])


@router.post("/reservations", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    session: AsyncSession = Depends(get_session),
    member: Member = Depends(get_current_member),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            reservation = await reservation_usecase.create_reservation(
                res_repo,
                member_id=member.id,
                slot=payload.slot(),
            )
        except DomainError as exc:
            raise_http(exc)

    audit_reservation(
        action="reservation.created",
        initiator="member",
        actor=member,
        reservation=reservation,
        status_from=None,
        status_to=reservation.status,
    )
    return ReservationRead.from_db(reservation=reservation)


@router.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_reservation(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    member: Member = Depends(get_current_member),
) -> None:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            current = await reservation_usecase.get_reservation(res_repo, reservation_id=reservation_id)
            ensure_owner(current, member)
            removed = await reservation_usecase.cancel_reservation(res_repo, reservation_id=reservation_id)
        except DomainError as exc:
            raise_http(exc)

    audit_reservation(
        action="reservation.cancelled",
        initiator="member",
        actor=member,
        reservation=removed,
        status_from=removed.status,
        status_to=None,
    )


@router.get("/me/reservations", response_model=List[MyReservationRead])
async def list_my_reservations(
    session: AsyncSession = Depends(get_session),
    member: Member = Depends(get_current_member),
) -> list[MyReservationRead]:
    res_repo = SqlAlchemyReservationRepository(session)
    rows = await reservation_usecase.find_my_reservations(res_repo, member_id=member.id)
    return [MyReservationRead.from_db(reservation=reservation, rank=rank) for reservation, rank in rows]
from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_member, get_session
from ..domain.errors import DomainError
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..models import Member, ReservationStatus
from ..schemas import ReservationCreate, ReservationRead
from ..usecases import reservations as reservation_usecase
from ..usecases import waitings as waiting_usecase
from .common import audit_reservation, ensure_owner, raise_http

router = APIRouter(prefix="/waitings", tags=["waitings"])


@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_waiting(
    payload: ReservationCreate,
    session: AsyncSession = Depends(get_session),
    member: Member = Depends(get_current_member),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            waiting = await waiting_usecase.create_waiting(res_repo, member_id=member.id, slot=payload.slot())
        except DomainError as exc:
            raise_http(exc)

    audit_reservation(
        action="waiting.created",
        initiator="member",
        actor=member,
        reservation=waiting,
        status_from=None,
        status_to=waiting.status,
    )
    return ReservationRead.from_db(reservation=waiting)


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_waiting(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    member: Member = Depends(get_current_member),
) -> None:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            current = await reservation_usecase.get_reservation(res_repo, reservation_id=reservation_id)
            if current.status != ReservationStatus.WAITING:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="waiting not found")
            ensure_owner(current, member)
            removed = await reservation_usecase.cancel_reservation(res_repo, reservation_id=reservation_id)
        except DomainError as exc:
            raise_http(exc)

    audit_reservation(
        action="waiting.cancelled",
        initiator="member",
        actor=member,
        reservation=removed,
        status_from=ReservationStatus.WAITING,
        status_to=None,
    )

from typing import Annotated, List

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session, require_admin
from ..domain.errors import DomainError
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..models import Member, ReservationStatus
from ..schemas import AdminReservationCreate, ReservationRead, ReservationSearch
from ..usecases import reservations as reservation_usecase
from ..usecases import waitings as waiting_usecase
from .common import audit_reservation, raise_http

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/reservations", response_model=List[ReservationRead])
async def list_reservations(session: AsyncSession = Depends(get_session)) -> list[ReservationRead]:
    rows = await reservation_usecase.find_all(SqlAlchemyReservationRepository(session))
    return [ReservationRead.from_db(reservation=reservation) for reservation in rows]


@router.get("/reservations/search", response_model=List[ReservationRead])
async def search_reservations(
    search: Annotated[ReservationSearch, Query()],
    session: AsyncSession = Depends(get_session),
) -> list[ReservationRead]:
    rows = await reservation_usecase.find_all_by(
        SqlAlchemyReservationRepository(session),
        criteria=search.to_filter(),
    )
    return [ReservationRead.from_db(reservation=reservation) for reservation in rows]


@router.post("/reservations", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: AdminReservationCreate,
    session: AsyncSession = Depends(get_session),
    admin: Member = Depends(require_admin),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            reservation = await reservation_usecase.create_reservation(
                res_repo,
                member_id=payload.member_id,
                slot=payload.slot(),
            )
        except DomainError as exc:
            raise_http(exc)

    audit_reservation(
        action="reservation.created",
        initiator="admin",
        actor=admin,
        reservation=reservation,
        status_from=None,
        status_to=reservation.status,
    )
    return ReservationRead.from_db(reservation=reservation)


@router.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_reservation(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    admin: Member = Depends(require_admin),
) -> None:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            removed = await reservation_usecase.cancel_reservation(res_repo, reservation_id=reservation_id)
        except DomainError as exc:
            raise_http(exc)

    audit_reservation(
        action="reservation.cancelled",
        initiator="admin",
        actor=admin,
        reservation=removed,
        status_from=removed.status,
        status_to=None,
    )


@router.get("/waitings", response_model=List[ReservationRead])
async def list_waitings(session: AsyncSession = Depends(get_session)) -> list[ReservationRead]:
    rows = await waiting_usecase.find_waitings(SqlAlchemyReservationRepository(session))
    return [ReservationRead.from_db(reservation=reservation) for reservation in rows]


@router.post("/waitings/{reservation_id}/approve", response_model=ReservationRead)
async def approve_waiting(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    admin: Member = Depends(require_admin),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            approved = await waiting_usecase.approve_waiting(res_repo, reservation_id=reservation_id)
        except DomainError as exc:
            raise_http(exc)

    audit_reservation(
        action="waiting.approved",
        initiator="admin",
        actor=admin,
        reservation=approved,
        status_from=ReservationStatus.WAITING,
        status_to=approved.status,
    )
    return ReservationRead.from_db(reservation=approved)


@router.delete("/waitings/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def reject_waiting(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    admin: Member = Depends(require_admin),
) -> None:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        try:
            removed = await waiting_usecase.reject_waiting(res_repo, reservation_id=reservation_id)
        except DomainError as exc:
            raise_http(exc)

    audit_reservation(
        action="waiting.rejected",
        initiator="admin",
        actor=admin,
        reservation=removed,
        status_from=removed.status,
        status_to=None,
    )

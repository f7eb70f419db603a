from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import ColumnElement, Select, and_, case, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from ..domain.errors import StoreConflictError
from ..domain.repositories import ReservationRepository
from ..domain.values import SlotKey
from ..models import (
    UQ_ACTIVE_SLOT,
    UQ_MEMBER_SLOT,
    Member,
    Reservation,
    ReservationStatus,
    ReservationTime,
    Theme,
)

_RELATIONS = ["member", "theme", "time"]


def _same_slot(slot: SlotKey) -> ColumnElement[bool]:
    return and_(
        Reservation.theme_id == slot.theme_id,
        Reservation.date == slot.date,
        Reservation.time_id == slot.time_id,
    )


def _waiting_rank() -> ColumnElement[int]:
    ahead = aliased(Reservation)
    waiting_ahead = (
        select(func.count(ahead.id))
        .where(
            ahead.theme_id == Reservation.theme_id,
            ahead.date == Reservation.date,
            ahead.time_id == Reservation.time_id,
            ahead.status == ReservationStatus.WAITING,
            ahead.id < Reservation.id,
        )
        .correlate(Reservation)
        .scalar_subquery()
    )
    return case((Reservation.status == ReservationStatus.WAITING, waiting_ahead + 1), else_=0)


def violated_constraint(exc: IntegrityError) -> Optional[str]:
    """Name of the unique constraint behind `exc`, if the driver message carries it.

    MySQL and PostgreSQL quote the constraint name; SQLite lists the columns instead.
    """
    message = str(exc.orig)
    for name in (UQ_ACTIVE_SLOT, UQ_MEMBER_SLOT):
        if name in message:
            return name
    if "reservations.active_slot" in message:
        return UQ_ACTIVE_SLOT
    if "reservations.member_id" in message:
        return UQ_MEMBER_SLOT
    return None


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count_reserved(self, slot: SlotKey) -> int:
        stmt = select(func.count(Reservation.id)).where(
            _same_slot(slot),
            Reservation.status == ReservationStatus.RESERVED,
        )
        return int(await self.session.scalar(stmt) or 0)

    async def exists_reserved(self, slot: SlotKey) -> bool:
        stmt = select(
            exists().where(_same_slot(slot), Reservation.status == ReservationStatus.RESERVED)
        )
        return bool(await self.session.scalar(stmt))

    async def exists_for_member(self, slot: SlotKey, member_id: int, status: ReservationStatus) -> bool:
        stmt = select(Reservation.id).where(
            _same_slot(slot),
            Reservation.member_id == member_id,
            Reservation.status == status,
        )
        return await self.session.scalar(stmt) is not None

    async def missing_reference(self, *, member_id: int, slot: SlotKey) -> Optional[str]:
        checks = (
            ("member", Member.id == member_id),
            ("theme", Theme.id == slot.theme_id),
            ("time", ReservationTime.id == slot.time_id),
        )
        for name, clause in checks:
            if not await self.session.scalar(select(exists().where(clause))):
                return name
        return None

    async def list_filtered(
        self,
        *,
        theme_id: int | None,
        member_id: int | None,
        date_from: date | None,
        date_to: date | None,
        status: ReservationStatus,
    ) -> List[Reservation]:
        stmt: Select[tuple[Reservation]] = select(Reservation).where(Reservation.status == status)
        if theme_id is not None:
            stmt = stmt.where(Reservation.theme_id == theme_id)
        if member_id is not None:
            stmt = stmt.where(Reservation.member_id == member_id)
        if date_from is not None:
            stmt = stmt.where(Reservation.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Reservation.date <= date_to)
        return list(await self.session.scalars(stmt.order_by(Reservation.id)))

    async def get(self, reservation_id: int) -> Reservation | None:
        return await self.session.scalar(select(Reservation).where(Reservation.id == reservation_id))

    async def get_for_update(self, reservation_id: int) -> Reservation | None:
        # of= keeps the lock on the reservation row, not the joined lookup rows.
        stmt = select(Reservation).where(Reservation.id == reservation_id).with_for_update(of=Reservation)
        return await self.session.scalar(stmt)

    async def list_all(self) -> List[Reservation]:
        return list(await self.session.scalars(select(Reservation).order_by(Reservation.id)))

    async def list_by_status(self, status: ReservationStatus) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.status == status).order_by(Reservation.id)
        return list(await self.session.scalars(stmt))

    async def list_by_member_with_rank(self, member_id: int) -> List[tuple[Reservation, int]]:
        stmt = (
            select(Reservation, _waiting_rank())
            .join(ReservationTime, Reservation.time_id == ReservationTime.id)
            .where(Reservation.member_id == member_id)
            .order_by(Reservation.date, ReservationTime.start_at, Reservation.id)
        )
        result = await self.session.execute(stmt)
        return [(reservation, int(rank)) for reservation, rank in result.all()]

    async def create(self, *, member_id: int, slot: SlotKey, status: ReservationStatus) -> Reservation:
        reservation = Reservation(
            member_id=member_id,
            theme_id=slot.theme_id,
            date=slot.date,
            time_id=slot.time_id,
            status=status,
            created_at=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        try:
            async with self.session.begin_nested():
                self.session.add(reservation)
        except IntegrityError as exc:
            raise StoreConflictError(violated_constraint(exc)) from exc
        await self.session.refresh(reservation, attribute_names=_RELATIONS)
        return reservation

    async def promote(self, reservation: Reservation) -> Reservation:
        # Mutate only after the savepoint opens so the UPDATE is flushed inside it.
        try:
            async with self.session.begin_nested():
                reservation.status = ReservationStatus.RESERVED
        except IntegrityError as exc:
            await self.session.refresh(reservation)
            raise StoreConflictError(violated_constraint(exc)) from exc
        return reservation

    async def delete(self, reservation: Reservation) -> None:
        await self.session.delete(reservation)
        await self.session.flush()

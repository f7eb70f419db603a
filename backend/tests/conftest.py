from datetime import date, datetime, time
from typing import Optional

import pytest
from app.domain.errors import StoreConflictError
from app.domain.values import SlotKey
from app.models import (
    UQ_ACTIVE_SLOT,
    UQ_MEMBER_SLOT,
    Member,
    MemberRole,
    Reservation,
    ReservationStatus,
    ReservationTime,
    Theme,
)

MAY_EIGHTH = date(2034, 5, 8)


class InMemoryReservationRepository:
    """Reservation store backed by a dict, with the database's unique constraints."""

    def __init__(self, members: dict[int, Member], themes: dict[int, Theme], times: dict[int, ReservationTime]) -> None:
        self.members = members
        self.themes = themes
        self.times = times
        self.rows: dict[int, Reservation] = {}
        self.writes = 0
        # Set to a constraint name to make the next write fail as a concurrent writer would.
        self.lose_next_write: Optional[str] = None
        self._next_id = 1

    def _ordered(self) -> list[Reservation]:
        return [self.rows[key] for key in sorted(self.rows)]

    def _in_slot(self, slot: SlotKey) -> list[Reservation]:
        return [r for r in self._ordered() if SlotKey.of(r) == slot]

    def _check_unique(self, candidate: Reservation) -> None:
        if self.lose_next_write is not None:
            constraint, self.lose_next_write = self.lose_next_write, None
            raise StoreConflictError(constraint)
        for other in self._in_slot(SlotKey.of(candidate)):
            if other is candidate:
                continue
            if other.member_id == candidate.member_id:
                raise StoreConflictError(UQ_MEMBER_SLOT)
            if other.status == candidate.status == ReservationStatus.RESERVED:
                raise StoreConflictError(UQ_ACTIVE_SLOT)

    async def count_reserved(self, slot: SlotKey) -> int:
        return sum(1 for r in self._in_slot(slot) if r.status == ReservationStatus.RESERVED)

    async def exists_reserved(self, slot: SlotKey) -> bool:
        return await self.count_reserved(slot) > 0

    async def exists_for_member(self, slot: SlotKey, member_id: int, status: ReservationStatus) -> bool:
        return any(r.member_id == member_id and r.status == status for r in self._in_slot(slot))

    async def missing_reference(self, *, member_id: int, slot: SlotKey) -> Optional[str]:
        if member_id not in self.members:
            return "member"
        if slot.theme_id not in self.themes:
            return "theme"
        if slot.time_id not in self.times:
            return "time"
        return None

    async def list_filtered(
        self,
        *,
        theme_id: int | None,
        member_id: int | None,
        date_from: date | None,
        date_to: date | None,
        status: ReservationStatus,
    ) -> list[Reservation]:
        return [
            r
            for r in self._ordered()
            if r.status == status
            and (theme_id is None or r.theme_id == theme_id)
            and (member_id is None or r.member_id == member_id)
            and (date_from is None or r.date >= date_from)
            and (date_to is None or r.date <= date_to)
        ]

    async def get(self, reservation_id: int) -> Reservation | None:
        return self.rows.get(reservation_id)

    async def get_for_update(self, reservation_id: int) -> Reservation | None:
        return self.rows.get(reservation_id)

    async def list_all(self) -> list[Reservation]:
        return self._ordered()

    async def list_by_status(self, status: ReservationStatus) -> list[Reservation]:
        return [r for r in self._ordered() if r.status == status]

    async def list_by_member_with_rank(self, member_id: int) -> list[tuple[Reservation, int]]:
        mine = sorted(
            (r for r in self._ordered() if r.member_id == member_id),
            key=lambda r: (r.date, r.time.start_at, r.id),
        )
        return [(r, self._rank(r)) for r in mine]

    def _rank(self, reservation: Reservation) -> int:
        if reservation.status == ReservationStatus.RESERVED:
            return 0
        ahead = self._in_slot(SlotKey.of(reservation))
        return 1 + sum(1 for r in ahead if r.status == ReservationStatus.WAITING and r.id < reservation.id)

    async def create(self, *, member_id: int, slot: SlotKey, status: ReservationStatus) -> Reservation:
        reservation = Reservation(
            id=self._next_id,
            member_id=member_id,
            theme_id=slot.theme_id,
            date=slot.date,
            time_id=slot.time_id,
            status=status,
            created_at=datetime(2034, 5, 1, 12, 0, self._next_id % 60),
            member=self.members[member_id],
            theme=self.themes[slot.theme_id],
            time=self.times[slot.time_id],
        )
        self._check_unique(reservation)
        self.rows[reservation.id] = reservation
        self._next_id += 1
        self.writes += 1
        return reservation

    async def promote(self, reservation: Reservation) -> Reservation:
        reservation.status = ReservationStatus.RESERVED
        try:
            self._check_unique(reservation)
        except StoreConflictError:
            reservation.status = ReservationStatus.WAITING
            raise
        self.writes += 1
        return reservation

    async def delete(self, reservation: Reservation) -> None:
        del self.rows[reservation.id]
        self.writes += 1


@pytest.fixture
def members() -> dict[int, Member]:
    return {
        1: Member(id=1, name="mia", email="mia@email.com", role=MemberRole.MEMBER),
        2: Member(id=2, name="tenny", email="tenny@email.com", role=MemberRole.MEMBER),
        3: Member(id=3, name="brown", email="brown@email.com", role=MemberRole.MEMBER),
        4: Member(id=4, name="admin", email="admin@email.com", role=MemberRole.ADMIN),
    }


@pytest.fixture
def themes() -> dict[int, Theme]:
    return {
        1: Theme(id=1, name="horror", description="Escape before midnight"),
        2: Theme(id=2, name="detective", description="Find the culprit"),
    }


@pytest.fixture
def times() -> dict[int, ReservationTime]:
    return {
        1: ReservationTime(id=1, start_at=time(18, 0)),
        2: ReservationTime(id=2, start_at=time(19, 0)),
    }


@pytest.fixture
def repo(
    members: dict[int, Member],
    themes: dict[int, Theme],
    times: dict[int, ReservationTime],
) -> InMemoryReservationRepository:
    return InMemoryReservationRepository(members, themes, times)


@pytest.fixture
def slot_x() -> SlotKey:
    return SlotKey(theme_id=1, date=MAY_EIGHTH, time_id=1)

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..models import Reservation, ReservationStatus
from .values import SlotKey


class ReservationRepository(Protocol):
    """
    Durable reservation records.
    `create` and `promote` write inside a savepoint and raise StoreConflictError
    when a unique constraint rejects the write; the savepoint is rolled back,
    the surrounding transaction stays usable and nothing is persisted.
    """

    async def count_reserved(self, slot: SlotKey) -> int: ...

    async def exists_reserved(self, slot: SlotKey) -> bool: ...

    async def exists_for_member(self, slot: SlotKey, member_id: int, status: ReservationStatus) -> bool: ...

    async def missing_reference(self, *, member_id: int, slot: SlotKey) -> Optional[str]:
        """Name of the first of "member", "theme", "time" that does not exist, else None."""
        ...

    async def list_filtered(
        self,
        *,
        theme_id: int | None,
        member_id: int | None,
        date_from: date | None,
        date_to: date | None,
        status: ReservationStatus,
    ) -> Sequence[Reservation]: ...

    async def get(self, reservation_id: int) -> Reservation | None: ...

    async def get_for_update(self, reservation_id: int) -> Reservation | None: ...

    async def list_all(self) -> Sequence[Reservation]: ...

    async def list_by_status(self, status: ReservationStatus) -> Sequence[Reservation]: ...

    async def list_by_member_with_rank(self, member_id: int) -> Sequence[tuple[Reservation, int]]:
        """Member's records by date, start time, id; rank is 0 when reserved, else 1 + waiting ahead."""
        ...

    async def create(self, *, member_id: int, slot: SlotKey, status: ReservationStatus) -> Reservation: ...

    async def promote(self, reservation: Reservation) -> Reservation:
        """Turn a waiting record into the slot's reservation; on conflict it stays WAITING."""
        ...

    async def delete(self, reservation: Reservation) -> None: ...

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..models import Reservation


@dataclass(frozen=True)
class SlotKey:
    """A bookable unit: one theme at one time of one day."""

    theme_id: int
    date: date
    time_id: int

    @classmethod
    def of(cls, reservation: "Reservation") -> "SlotKey":
        return cls(theme_id=reservation.theme_id, date=reservation.date, time_id=reservation.time_id)


@dataclass(frozen=True)
class ReservationFilter:
    theme_id: Optional[int] = None
    member_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    def __post_init__(self) -> None:
        if self.date_from is not None and self.date_to is not None and self.date_from > self.date_to:
            raise ValueError("date_from must not be later than date_to")

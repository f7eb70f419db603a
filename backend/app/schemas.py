from datetime import date, time
from typing import Optional

from pydantic import BaseModel, Field, field_serializer, model_validator

from .domain.values import ReservationFilter, SlotKey
from .models import Reservation, ReservationStatus


class ReservationTimeRead(BaseModel):
    id: int
    start_at: time

    @field_serializer("start_at")
    def _ser_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class ThemeRead(BaseModel):
    id: int
    name: str


class ReservationCreate(BaseModel):
    date: date
    time_id: int = Field(ge=1)
    theme_id: int = Field(ge=1)

    def slot(self) -> SlotKey:
        return SlotKey(theme_id=self.theme_id, date=self.date, time_id=self.time_id)


class AdminReservationCreate(ReservationCreate):
    member_id: int = Field(ge=1)


class ReservationSearch(BaseModel):
    theme_id: Optional[int] = Field(default=None, ge=1)
    member_id: Optional[int] = Field(default=None, ge=1)
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @model_validator(mode="after")
    def _check_range(self) -> "ReservationSearch":
        if self.date_from is not None and self.date_to is not None and self.date_from > self.date_to:
            raise ValueError("date_from must not be later than date_to")
        return self

    def to_filter(self) -> ReservationFilter:
        return ReservationFilter(
            theme_id=self.theme_id,
            member_id=self.member_id,
            date_from=self.date_from,
            date_to=self.date_to,
        )


class ReservationRead(BaseModel):
    id: int
    name: str
    date: date
    time: ReservationTimeRead
    theme: ThemeRead
    status: ReservationStatus

    @classmethod
    def from_db(cls, *, reservation: Reservation) -> "ReservationRead":
        return cls(
            id=reservation.id,
            name=reservation.member.name,
            date=reservation.date,
            time=ReservationTimeRead(id=reservation.time.id, start_at=reservation.time.start_at),
            theme=ThemeRead(id=reservation.theme.id, name=reservation.theme.name),
            status=reservation.status,
        )


class MyReservationRead(BaseModel):
    reservation_id: int
    theme: str
    date: date
    time: time
    status: ReservationStatus
    rank: int = Field(ge=0, description="Waitlist position; 0 when the slot is reserved")

    @field_serializer("time")
    def _ser_time(self, value: time) -> str:
        return value.strftime("%H:%M")

    @classmethod
    def from_db(cls, *, reservation: Reservation, rank: int) -> "MyReservationRead":
        return cls(
            reservation_id=reservation.id,
            theme=reservation.theme.name,
            date=reservation.date,
            time=reservation.time.start_at,
            status=reservation.status,
            rank=rank,
        )

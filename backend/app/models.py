from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Optional

from sqlalchemy import Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates
from sqlalchemy.sql.sqltypes import BigInteger, Boolean, Date, DateTime, Integer, String, Text, Time

# Constraint names are matched when translating integrity errors.
UQ_ACTIVE_SLOT = "uq_res_active_slot"
UQ_MEMBER_SLOT = "uq_res_member_slot"

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_Id = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class MemberRole(StrEnum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class ReservationStatus(StrEnum):
    RESERVED = "RESERVED"
    WAITING = "WAITING"


def _enum_column(enum_cls: type[StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        values_callable=lambda cls: [e.value for e in cls],
        native_enum=False,
    )


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (UniqueConstraint("email", name="uq_members_email"),)

    id: Mapped[int] = mapped_column(_Id, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[MemberRole] = mapped_column(_enum_column(MemberRole), nullable=False, default=MemberRole.MEMBER)


class Theme(Base):
    __tablename__ = "themes"

    id: Mapped[int] = mapped_column(_Id, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ReservationTime(Base):
    __tablename__ = "reservation_times"
    __table_args__ = (UniqueConstraint("start_at", name="uq_times_start_at"),)

    id: Mapped[int] = mapped_column(_Id, primary_key=True, autoincrement=True)
    start_at: Mapped[dt.time] = mapped_column(Time, nullable=False)


class Reservation(Base):
    """One member's claim on a (theme, date, time) slot.

    ``active_slot`` mirrors ``status``: True while RESERVED, NULL while WAITING.
    NULLs never collide in a unique constraint, so ``uq_res_active_slot`` admits
    any number of waiting rows but only one reserved row per slot.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        UniqueConstraint("theme_id", "date", "time_id", "active_slot", name=UQ_ACTIVE_SLOT),
        UniqueConstraint("member_id", "theme_id", "date", "time_id", name=UQ_MEMBER_SLOT),
        Index("idx_res_slot_status", "theme_id", "date", "time_id", "status"),
        Index("idx_res_member", "member_id"),
    )

    id: Mapped[int] = mapped_column(_Id, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    theme_id: Mapped[int] = mapped_column(ForeignKey("themes.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time_id: Mapped[int] = mapped_column(ForeignKey("reservation_times.id"), nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(_enum_column(ReservationStatus), nullable=False)
    active_slot: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    member: Mapped["Member"] = relationship(lazy="joined", innerjoin=True)
    theme: Mapped["Theme"] = relationship(lazy="joined", innerjoin=True)
    time: Mapped["ReservationTime"] = relationship(lazy="joined", innerjoin=True)

    @validates("status")
    def _sync_active_slot(self, key: str, value: ReservationStatus) -> ReservationStatus:
        self.active_slot = True if value == ReservationStatus.RESERVED else None
        return value

from typing import Any, NoReturn, Optional

from fastapi import HTTPException, status

from ..domain.errors import (
    AlreadyReservedError,
    ConflictError,
    DomainError,
    DuplicateSlotError,
    DuplicateWaitingError,
    NoActiveReservationError,
    NotFoundError,
    ReferenceNotFoundError,
)
from ..models import Member, Reservation
from ..utils.audit_log import AuditAction, AuditInitiator, emit_audit_log

_ERROR_RESPONSES: dict[type[DomainError], tuple[int, str]] = {
    DuplicateSlotError: (status.HTTP_409_CONFLICT, "slot already reserved"),
    NoActiveReservationError: (status.HTTP_400_BAD_REQUEST, "no reservation to wait for"),
    AlreadyReservedError: (status.HTTP_409_CONFLICT, "already reserved this slot"),
    DuplicateWaitingError: (status.HTTP_409_CONFLICT, "already waiting for this slot"),
    NotFoundError: (status.HTTP_404_NOT_FOUND, "reservation not found"),
    ReferenceNotFoundError: (status.HTTP_404_NOT_FOUND, "member, theme or time not found"),
    ConflictError: (status.HTTP_409_CONFLICT, "slot already reserved"),
}


def raise_http(exc: DomainError) -> NoReturn:
    status_code, detail = _ERROR_RESPONSES.get(type(exc), (status.HTTP_400_BAD_REQUEST, str(exc)))
    raise HTTPException(status_code=status_code, detail=detail) from exc


def ensure_owner(reservation: Reservation, member: Member) -> None:
    if reservation.member_id != member.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="not your reservation")


def audit_reservation(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    actor: Member,
    reservation: Reservation,
    status_from: Optional[Any],
    status_to: Optional[Any],
) -> None:
    try:
        emit_audit_log(
            action=action,
            initiator=initiator,
            actor_id=actor.id,
            reservation_id=reservation.id,
            member_id=reservation.member_id,
            theme_id=reservation.theme_id,
            date=reservation.date,
            time_id=reservation.time_id,
            status_from=status_from,
            status_to=status_to,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

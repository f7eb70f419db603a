from datetime import date

import pytest
from app.domain.values import ReservationFilter, SlotKey
from app.models import Reservation, ReservationStatus


def test_slot_key_compares_by_value() -> None:
    a = SlotKey(theme_id=1, date=date(2034, 5, 8), time_id=2)
    b = SlotKey(theme_id=1, date=date(2034, 5, 8), time_id=2)
    assert a == b
    assert len({a, b}) == 1
    assert a != SlotKey(theme_id=1, date=date(2034, 5, 8), time_id=3)


def test_slot_key_of_reservation() -> None:
    reservation = Reservation(
        member_id=1,
        theme_id=3,
        date=date(2034, 5, 8),
        time_id=4,
        status=ReservationStatus.WAITING,
    )
    assert SlotKey.of(reservation) == SlotKey(theme_id=3, date=date(2034, 5, 8), time_id=4)


def test_filter_rejects_inverted_date_range() -> None:
    with pytest.raises(ValueError):
        ReservationFilter(date_from=date(2034, 5, 28), date_to=date(2034, 5, 8))


def test_filter_allows_open_ended_range() -> None:
    criteria = ReservationFilter(date_from=date(2034, 5, 8))
    assert criteria.date_to is None
    assert criteria.theme_id is None

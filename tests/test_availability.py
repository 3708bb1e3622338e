from datetime import datetime

import pytest

from core.exceptions import ConflictException, ValidationException
from models.enums import ReservationStatus, TableLocation
from services.availability import (
    LOCATION_PRICING,
    conflicting_reservations,
    ensure_table_free,
    find_available_tables,
    intervals_overlap,
    price_multiplier,
)
from services.stores import SqlReservationStore, SqlTableStore

DAY = datetime(2024, 6, 1)


def at(hour, minute=0):
    return DAY.replace(hour=hour, minute=minute)


@pytest.fixture
def stores(session):
    return SqlTableStore(session), SqlReservationStore(session)


def test_intervals_overlap_is_half_open():
    assert intervals_overlap(at(19), at(21), at(20, 30), at(22, 30))
    assert intervals_overlap(at(19), at(21), at(18), at(23))
    assert not intervals_overlap(at(19), at(21), at(21), at(22))
    assert not intervals_overlap(at(21), at(22), at(19), at(21))


def test_price_multiplier_defaults_to_one_for_unknown_location():
    assert price_multiplier(TableLocation.TERRACE_SEA_VIEW) == 1.2
    assert price_multiplier("BAR_AREA") == 0.8
    assert price_multiplier("ROOFTOP") == 1.0
    assert set(LOCATION_PRICING) == set(TableLocation)


def test_overlapping_reservation_excludes_table(stores, make_table, make_reservation):
    t1 = make_table(1, capacity=4, location=TableLocation.INDOOR_STANDARD)
    make_reservation(t1, at(19), duration=120)

    result = find_available_tables(*stores, requested_start=at(20, 30), party_size=4, duration_minutes=120)

    assert result.available is False
    assert result.total_tables == 0
    assert result.recommendations == []
    assert result.alternative_times == []


def test_back_to_back_reservation_is_not_a_conflict(stores, make_table, make_reservation):
    t1 = make_table(1, capacity=4, location=TableLocation.INDOOR_STANDARD)
    make_reservation(t1, at(19), duration=120)

    result = find_available_tables(*stores, requested_start=at(21), party_size=4, duration_minutes=60)

    assert result.available is True
    assert [t.id for t in result.recommendations] == [t1.id]
    assert result.recommendations[0].price_multiplier == 0.9


def test_reservation_starting_at_requested_end_is_not_a_conflict(stores, make_table, make_reservation):
    t1 = make_table(1)
    make_reservation(t1, at(20), duration=120)

    result = find_available_tables(*stores, requested_start=at(18), party_size=2, duration_minutes=120)

    assert result.available is True


@pytest.mark.parametrize("status", [ReservationStatus.COMPLETED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW])
def test_inactive_reservations_never_block(stores, make_table, make_reservation, status):
    t1 = make_table(1)
    make_reservation(t1, at(19), status=status)

    result = find_available_tables(*stores, requested_start=at(19), party_size=2)

    assert result.available is True


def test_pending_and_seated_reservations_block(stores, make_table, make_reservation):
    t1 = make_table(1)
    t2 = make_table(2)
    make_reservation(t1, at(19), status=ReservationStatus.PENDING)
    make_reservation(t2, at(19), status=ReservationStatus.SEATED)

    result = find_available_tables(*stores, requested_start=at(19, 30), party_size=2)

    assert result.available is False


def test_candidates_filtered_by_capacity_activity_and_location(stores, make_table):
    make_table(1, capacity=2)
    make_table(2, capacity=6, is_active=False)
    big_terrace = make_table(3, capacity=6, location=TableLocation.TERRACE_SEA_VIEW)
    make_table(4, capacity=6, location=TableLocation.BAR_AREA)

    result = find_available_tables(
        *stores, requested_start=at(19), party_size=5, preferred_location=TableLocation.TERRACE_SEA_VIEW
    )

    assert [t.id for t in result.recommendations] == [big_terrace.id]
    assert list(result.tables_by_location) == ["TERRACE_SEA_VIEW"]


def test_grouping_order_and_recommendation_limit(stores, make_table):
    make_table(10, capacity=4, location=TableLocation.TERRACE_STANDARD)
    make_table(5, capacity=2, location=TableLocation.INDOOR_WINDOW)
    make_table(4, capacity=4, location=TableLocation.INDOOR_WINDOW)
    make_table(3, capacity=2, location=TableLocation.INDOOR_WINDOW)
    make_table(7, capacity=2, location=TableLocation.BAR_AREA)
    make_table(8, capacity=8, location=TableLocation.BAR_AREA)

    result = find_available_tables(*stores, requested_start=at(19), party_size=2)

    assert result.total_tables == 6
    assert list(result.tables_by_location) == ["BAR_AREA", "INDOOR_WINDOW", "TERRACE_STANDARD"]
    assert [t.number for t in result.tables_by_location["INDOOR_WINDOW"]] == [3, 5, 4]
    assert [t.number for t in result.recommendations] == [7, 8, 3, 5, 4]
    assert [t.price_multiplier for t in result.recommendations] == [0.8, 0.8, 1.0, 1.0, 1.0]


def test_repeated_calls_are_identical(stores, make_table, make_reservation):
    t1 = make_table(1)
    make_table(2)
    make_reservation(t1, at(19))

    first = find_available_tables(*stores, requested_start=at(19), party_size=2)
    second = find_available_tables(*stores, requested_start=at(19), party_size=2)

    assert first == second


@pytest.mark.parametrize("party_size, duration", [(0, 120), (2, 59), (2, 301), (2, -30)])
def test_invalid_window_is_rejected(stores, party_size, duration):
    with pytest.raises(ValidationException):
        find_available_tables(*stores, requested_start=at(19), party_size=party_size, duration_minutes=duration)


def test_store_failures_propagate():
    class BrokenTableStore:
        def list_tables(self, filter):
            raise RuntimeError("database unavailable")

    with pytest.raises(RuntimeError):
        find_available_tables(BrokenTableStore(), None, requested_start=at(19), party_size=2)


def test_conflicting_reservations_can_exclude_the_reservation_being_edited(make_table, make_reservation):
    t1 = make_table(1)
    existing = make_reservation(t1, at(19))

    assert conflicting_reservations([existing], at(19, 30), 60) == [existing]
    assert conflicting_reservations([existing], at(19, 30), 60, exclude_id=existing.id) == []


def test_ensure_table_free_raises_conflict(session, make_table, make_reservation):
    t1 = make_table(1)
    existing = make_reservation(t1, at(19))
    store = SqlReservationStore(session)

    with pytest.raises(ConflictException) as exc_info:
        ensure_table_free(store, t1.id, at(20), 120)
    assert exc_info.value.details["conflicting_reservation_ids"] == [existing.id]

    ensure_table_free(store, t1.id, at(21), 120)
    ensure_table_free(store, t1.id, at(20), 120, exclude_reservation_id=existing.id)

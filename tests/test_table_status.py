from datetime import datetime, timedelta

from models.enums import ReservationStatus, TableLocation, TableStatus
from models.reservations import Reservation
from models.tables import Table
from services.stores import SqlReservationStore, SqlTableStore
from services.table_status import current_reservation, next_reservation, resolve_status, table_status_board

NOW = datetime(2024, 6, 1, 19, 0)


def table(is_active=True):
    return Table(id=1, number=1, capacity=4, location=TableLocation.INDOOR_WINDOW, is_active=is_active)


def reservation(start, status=ReservationStatus.CONFIRMED, duration=120, id=1):
    return Reservation(id=id, customer_id=1, table_id=1, date_time=start, duration=duration, party_size=2, status=status)


def test_inactive_table_is_out_of_order_regardless_of_reservations():
    reservations = [reservation(NOW - timedelta(minutes=30)), reservation(NOW + timedelta(hours=2), id=2)]
    assert resolve_status(table(is_active=False), reservations, NOW) == TableStatus.OUT_OF_ORDER
    assert resolve_status(table(is_active=False), [], NOW) == TableStatus.OUT_OF_ORDER


def test_confirmed_reservation_in_progress_makes_table_occupied():
    assert resolve_status(table(), [reservation(NOW - timedelta(minutes=90))], NOW) == TableStatus.OCCUPIED
    assert resolve_status(table(), [reservation(NOW)], NOW) == TableStatus.OCCUPIED


def test_occupancy_window_is_fixed_two_hours():
    # Una reserva de 5 horas deja de contar como ocupada a las 2 horas
    long_stay = reservation(NOW - timedelta(hours=2), duration=300)
    assert resolve_status(table(), [long_stay], NOW) == TableStatus.AVAILABLE

    short_stay = reservation(NOW - timedelta(minutes=90), duration=60)
    assert resolve_status(table(), [short_stay], NOW) == TableStatus.OCCUPIED


def test_future_confirmed_reservation_makes_table_reserved():
    assert resolve_status(table(), [reservation(NOW + timedelta(hours=3))], NOW) == TableStatus.RESERVED


def test_pending_and_seated_reservations_do_not_change_status():
    reservations = [
        reservation(NOW - timedelta(minutes=30), status=ReservationStatus.SEATED),
        reservation(NOW + timedelta(hours=1), status=ReservationStatus.PENDING, id=2),
    ]
    assert resolve_status(table(), reservations, NOW) == TableStatus.AVAILABLE


def test_occupied_takes_precedence_over_reserved():
    reservations = [reservation(NOW + timedelta(hours=3), id=2), reservation(NOW - timedelta(minutes=10))]
    assert resolve_status(table(), reservations, NOW) == TableStatus.OCCUPIED


def test_current_and_next_reservation_helpers():
    ongoing = reservation(NOW - timedelta(minutes=10))
    later = reservation(NOW + timedelta(hours=4), id=2)
    sooner = reservation(NOW + timedelta(hours=3), id=3)

    assert current_reservation([later, ongoing], NOW) is ongoing
    assert next_reservation([later, ongoing, sooner], NOW) is sooner
    assert next_reservation([ongoing], NOW) is None


def test_status_board_covers_every_table(session, make_table, make_reservation):
    now = datetime(2031, 6, 1, 19, 0)
    busy = make_table(1, location=TableLocation.TERRACE_STANDARD)
    booked = make_table(2, location=TableLocation.BAR_AREA)
    make_table(3, location=TableLocation.BAR_AREA, is_active=False)
    make_reservation(busy, now - timedelta(minutes=30))
    make_reservation(booked, now + timedelta(hours=2))

    board = table_status_board(SqlTableStore(session), SqlReservationStore(session), now)

    assert [(entry.number, entry.current_status) for entry in board] == [
        (2, TableStatus.RESERVED),
        (3, TableStatus.OUT_OF_ORDER),
        (1, TableStatus.OCCUPIED),
    ]
    assert board[0].next_reservation is not None
    assert board[2].current_reservation is not None

    active_only = table_status_board(SqlTableStore(session), SqlReservationStore(session), now, include_inactive=False)
    assert [entry.number for entry in active_only] == [2, 1]

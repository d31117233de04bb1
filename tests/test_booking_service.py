from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
from pymongo.errors import PyMongoError

from evcharge.services.booking import BookingService
from evcharge.services.errors import (
    InternalError,
    InvalidStationData,
    NotAuthenticated,
    NotFound,
    ValidationError,
)


def test_create_booking_embeds_snapshots(booking, user, user_id, station_data):
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)

    assert appointment.userId == user_id
    assert appointment.statId == "S1"
    assert appointment.slotData == "3_3_2025"
    assert appointment.slotTime == "04:00 AM"
    assert appointment.amount == 12.5
    assert appointment.isCancelled is False
    assert appointment.userData.model_dump() == {"id": user_id, "name": "Ana Driver", "email": "ana@example.com"}
    assert appointment.stationData.model_dump(by_alias=True) == station_data


def test_create_booking_persists_record(booking, find_appointment, user_id, station_data):
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)

    stored = find_appointment(appointment.id)
    assert stored is not None
    assert stored["userId"] == user_id
    assert stored["stationData"]["_id"] == "S1"
    assert stored["isCancelled"] is False


def test_snapshot_is_not_affected_by_later_user_edits(booking, repos, user_id, station_data):
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)
    repos.users.update_profile(user_id, {"name": "Renamed"})

    [listed] = booking.list_for_user(user_id)
    assert listed.id == appointment.id
    assert listed.userData.name == "Ana Driver"


@pytest.mark.parametrize("missing", ["station_data", "slot_date", "slot_time", "amount"])
def test_create_booking_missing_field_is_rejected(booking, repos, user_id, station_data, missing):
    kwargs = {
        "station_data": station_data,
        "slot_date": "3_3_2025",
        "slot_time": "04:00 AM",
        "amount": 12.5,
    }
    kwargs[missing] = None

    with pytest.raises(ValidationError) as exc:
        booking.create_booking(user_id, **kwargs)

    assert not isinstance(exc.value, InvalidStationData)
    assert "Faltan campos requeridos" in exc.value.message
    assert repos.appointments.count() == 0


def test_missing_field_message_names_the_field(booking, user_id, station_data):
    with pytest.raises(ValidationError) as exc:
        booking.create_booking(user_id, station_data, "", "04:00 AM", 12.5)
    assert "slotData" in exc.value.message


@pytest.mark.parametrize("field", ["_id", "name", "location", "image"])
def test_create_booking_incomplete_station_data(booking, repos, user_id, station_data, field):
    del station_data[field]

    with pytest.raises(InvalidStationData):
        booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)
    assert repos.appointments.count() == 0


def test_create_booking_empty_station_field_is_invalid(booking, user_id, station_data):
    station_data["image"] = ""
    with pytest.raises(InvalidStationData):
        booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)


def test_create_booking_negative_amount(booking, user_id, station_data):
    with pytest.raises(ValidationError):
        booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", -1)


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf"), "nan", "Infinity"])
def test_create_booking_non_finite_amount(booking, repos, user_id, station_data, amount):
    with pytest.raises(ValidationError) as exc:
        booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", amount)
    assert exc.value.message == "Importe inválido"
    assert repos.appointments.count() == 0


def test_create_booking_unknown_user(booking, repos, station_data):
    with pytest.raises(NotAuthenticated):
        booking.create_booking("65f0c0ffee0000000000beef", station_data, "3_3_2025", "04:00 AM", 12.5)
    with pytest.raises(NotAuthenticated):
        booking.create_booking("U1", station_data, "3_3_2025", "04:00 AM", 12.5)
    assert repos.appointments.count() == 0


def test_same_slot_can_be_booked_twice(booking, user_id, station_data):
    def book(_):
        return booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)

    with ThreadPoolExecutor(max_workers=2) as pool:
        first, second = pool.map(book, range(2))

    assert first.id != second.id
    assert len(booking.list_for_user(user_id)) == 2


def test_cancel_as_user_removes_record(booking, user_id, station_data):
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)

    deleted = booking.cancel_as_user(user_id, appointment.id)

    assert deleted.id == appointment.id
    assert appointment.id not in [a.id for a in booking.list_for_user(user_id)]
    assert appointment.id not in [a.id for a in booking.list_all()]


def test_cancel_as_user_twice_is_not_found(booking, user_id, station_data):
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)
    booking.cancel_as_user(user_id, appointment.id)

    with pytest.raises(NotFound):
        booking.cancel_as_user(user_id, appointment.id)


def test_cancel_as_user_not_owner_leaves_record(booking, find_appointment, user_id, other_user, station_data):
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)
    before = find_appointment(appointment.id)

    with pytest.raises(NotFound) as not_owned:
        booking.cancel_as_user(str(other_user["_id"]), appointment.id)
    with pytest.raises(NotFound) as unknown:
        booking.cancel_as_user(user_id, "65f0c0ffee0000000000beef")

    # mismo mensaje: no se revela si la cita existe
    assert not_owned.value.message == unknown.value.message
    assert find_appointment(appointment.id) == before


def test_cancel_as_user_malformed_id(booking, user_id):
    with pytest.raises(NotFound):
        booking.cancel_as_user(user_id, "not-an-object-id")


def test_cancel_as_admin_keeps_record(booking, user_id, station_data):
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)

    cancelled = booking.cancel_as_admin(f"  {appointment.id}\n")

    assert cancelled.isCancelled is True
    [listed] = [a for a in booking.list_all() if a.id == appointment.id]
    assert listed.isCancelled is True
    # el usuario sigue viendo la cita cancelada
    assert booking.list_for_user(user_id)[0].isCancelled is True


def test_cancel_as_admin_is_idempotent(booking, user_id, station_data):
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)
    booking.cancel_as_admin(appointment.id)
    assert booking.cancel_as_admin(appointment.id).isCancelled is True


def test_cancel_as_admin_errors(booking):
    with pytest.raises(ValidationError):
        booking.cancel_as_admin("   ")
    with pytest.raises(NotFound):
        booking.cancel_as_admin("65f0c0ffee0000000000beef")


def test_list_for_user_only_returns_own(booking, user_id, other_user, station_data):
    other_id = str(other_user["_id"])
    booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)
    booking.create_booking(other_id, station_data, "4_3_2025", "05:00 AM", 10)

    assert [a.userId for a in booking.list_for_user(user_id)] == [user_id]
    assert booking.list_for_user("65f0c0ffee0000000000beef") == []
    assert len(booking.list_all()) == 2


def test_store_failure_is_reported_generically():
    appointments = MagicMock()
    appointments.find_all.side_effect = PyMongoError("connection refused to 10.0.0.7")
    service = BookingService(MagicMock(), MagicMock(), appointments)

    with pytest.raises(InternalError) as exc:
        service.list_all()

    assert "10.0.0.7" not in exc.value.message
    assert exc.value.status_code == 500


def test_create_booking_does_not_touch_station_directory(booking, repos, user_id, station_data):
    # la estación viaja como snapshot; no tiene por qué existir en `stations`
    assert repos.stations.count() == 0
    appointment = booking.create_booking(user_id, station_data, "3_3_2025", "04:00 AM", 12.5)
    assert appointment.statId == "S1"
    assert repos.stations.count() == 0

"""Unit tests for the check-in flow: code lookup, gates, trip rules and the live list."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, patch
from transit_checkin.exceptions import StoreUnavailable, ValidationError
from transit_checkin.models.attendance import AttendanceRecord
from transit_checkin.models.passenger import Passenger
from transit_checkin.models.trip import Direction
from transit_checkin.services import roster_service
from transit_checkin.services.checkin_service import NO_NAME, build_attendance_rows, read_attendance
from transit_checkin.services.roster_service import PassengerInput
from transit_checkin.views.checkin_station import CheckInStation, StationState


def local_day(year=2024, month=3, day=5, hour=8, minute=30):
    return lambda: datetime(year, month, day, hour, minute)


async def add_passenger(store, name="Ana Ruiz", doc="123", code="AR01", **extra):
    return await roster_service.create_passenger(store, PassengerInput(name=name, doc=doc, code=code, **extra))


def day_records(store, day="2024-03-05"):
    return (store.snapshot() or {}).get("attendance", {}).get(day)


@pytest.fixture
def station(store, trips):
    desk = CheckInStation("desk-1", store, trips, clock=local_day())
    desk.start()
    yield desk
    desk.stop()


class TestRegister:
    @pytest.mark.asyncio
    async def test_trip_hint_overrides_selector(self, store, station):
        ana = await add_passenger(store)
        station.select_trip("t1")
        station.set_direction("VUELTA")

        result = await station.register("ar01")

        assert result.registered
        assert result.direction == "IDA"
        records = day_records(store)["t1"]
        assert len(records) == 1
        record = records[result.record_id]
        assert record["passengerId"] == ana.id
        assert record["code"] == "AR01"
        assert record["direction"] == "IDA"
        assert isinstance(record["timestamp"], int)

    @pytest.mark.asyncio
    async def test_success_resets_desk(self, store, station):
        await add_passenger(store)
        station.select_trip("t1")

        result = await station.register(" ar01 ")

        assert result.message == "Registered: Ana Ruiz (IDA)"
        assert station.status == result.message
        assert station.state == StationState.IDLE
        assert station.code == ""
        assert result.preview["name"] == "Ana Ruiz"

    @pytest.mark.asyncio
    async def test_selector_used_when_trip_has_no_hint(self, store, station):
        await add_passenger(store)
        station.select_trip("t3")

        result = await station.register("AR01", direction="vuelta")

        assert result.direction == "VUELTA"
        assert station.direction == Direction.VUELTA

    @pytest.mark.asyncio
    async def test_unknown_code_writes_nothing(self, store, station):
        station.select_trip("t1")

        result = await station.register("ZZ99")

        assert not result.registered
        assert result.error == "not_found"
        assert result.message == "Code ZZ99 not found."
        assert station.state == StationState.IDLE
        assert result.preview is None
        assert day_records(store) is None

    @pytest.mark.asyncio
    async def test_dangling_index_entry_is_not_found(self, store, station):
        await store.set("codes/GH01", "ghost")
        station.select_trip("t1")

        result = await station.register("GH01")

        assert result.error == "not_found"
        assert day_records(store) is None

    @pytest.mark.asyncio
    async def test_inactive_passenger_shown_but_not_registered(self, store, station):
        await add_passenger(store, active=False)
        station.select_trip("t1")

        result = await station.register("AR01")

        assert not result.registered
        assert result.error == "inactive_passenger"
        assert "INACTIVE" in result.message
        assert result.preview["active"] is False
        assert station.state == StationState.RESOLVED
        assert day_records(store) is None

    @pytest.mark.asyncio
    async def test_empty_code(self, station):
        station.select_trip("t1")
        result = await station.register("   ")
        assert result.error == "validation_error"
        assert result.message == "Enter a code."

    @pytest.mark.asyncio
    async def test_trip_required_in_trip_mode(self, store, station):
        await add_passenger(store)

        result = await station.register("AR01")

        assert result.error == "validation_error"
        assert result.message == "Select a trip first."
        assert station.state == StationState.IDLE
        assert day_records(store) is None

    @pytest.mark.asyncio
    async def test_unknown_direction_rejected(self, store, station):
        await add_passenger(store)
        station.select_trip("t3")

        result = await station.register("AR01", direction="sideways")

        assert result.error == "validation_error"
        assert day_records(store) is None

    @pytest.mark.asyncio
    async def test_store_failure_records_nothing(self, store, station):
        await add_passenger(store)
        station.select_trip("t1")

        with patch.object(store, "set", AsyncMock(side_effect=StoreUnavailable("Store unreachable"))):
            result = await station.register("AR01")

        assert not result.registered
        assert result.error == "store_unavailable"
        assert day_records(store) is None


class TestTripSelection:
    @pytest.mark.asyncio
    async def test_switches_to_active_default_trip(self, store, station):
        await add_passenger(store, default_trip="t4")
        station.select_trip("t1")

        result = await station.register("AR01")

        assert result.trip_switched
        assert result.trip_id == "t4"
        assert result.direction == "VUELTA"
        assert station.selected_trip_id == "t4"
        assert "t1" not in day_records(store)
        assert len(day_records(store)["t4"]) == 1

    @pytest.mark.asyncio
    async def test_inactive_default_trip_is_ignored(self, store, station):
        await add_passenger(store, default_trip="t2")
        station.select_trip("t1")

        result = await station.register("AR01")

        assert not result.trip_switched
        assert result.trip_id == "t1"

    @pytest.mark.asyncio
    async def test_switch_happens_even_when_gate_rejects(self, store, station):
        await add_passenger(store, default_trip="t4", active=False)
        station.select_trip("t1")

        result = await station.register("AR01")

        assert result.error == "inactive_passenger"
        assert result.trip_switched
        assert station.selected_trip_id == "t4"

    def test_inactive_trip_cannot_be_selected(self, station):
        with pytest.raises(ValidationError):
            station.select_trip("t2")
        assert station.selected_trip_id is None

    def test_at_most_one_attendance_subscription(self, store, station):
        # trips directory + station passenger cache
        assert store.listener_count == 2
        station.select_trip("t1")
        assert store.listener_count == 3
        station.select_trip("t4")
        assert store.listener_count == 3
        station.select_trip(None)
        assert store.listener_count == 2

    def test_stop_releases_subscriptions(self, store, station):
        station.select_trip("t1")
        station.stop()
        assert store.listener_count == 1

    def test_cancelled_subscriptions_reopen(self, store, station):
        station.select_trip("t1")
        station._attendance_sub.close()
        station._passenger_sub.close()
        assert store.listener_count == 1

        station.attendance()
        assert store.listener_count == 2
        station.start()
        assert store.listener_count == 3
        assert station._attendance_sub.path == "attendance/2024-03-05/t1"


class TestLiveList:
    @pytest.mark.asyncio
    async def test_rows_follow_the_selected_trip(self, store, station):
        await add_passenger(store)
        await add_passenger(store, name="Beto Gil", doc="456", code="BG02")
        station.select_trip("t1")
        await station.register("AR01")
        await station.register("BG02")

        rows = station.attendance()
        assert [r.name for r in rows] == ["Beto Gil", "Ana Ruiz"]
        assert all(r.trip_id == "t1" for r in rows)

        station.select_trip("t4")
        assert station.attendance() == []

    @pytest.mark.asyncio
    async def test_day_rollover_rescopes(self, store, trips):
        now = {"value": datetime(2024, 3, 5, 23, 59)}
        desk = CheckInStation("desk-2", store, trips, clock=lambda: now["value"])
        desk.start()
        await add_passenger(store)
        desk.select_trip("t1")
        await desk.register("AR01")
        assert len(desk.attendance()) == 1

        now["value"] = datetime(2024, 3, 6, 0, 1)
        assert desk.attendance() == []
        assert desk.day == "2024-03-06"
        await desk.register("AR01")
        assert len(day_records(store, "2024-03-06")["t1"]) == 1
        desk.stop()

    @pytest.mark.asyncio
    async def test_simple_mode_records_per_day(self, store, trips):
        desk = CheckInStation("desk-3", store, trips, trip_aware=False, clock=local_day())
        desk.start()
        await add_passenger(store)

        result = await desk.register("AR01", direction="VUELTA")

        assert result.registered
        assert result.trip_id is None
        assert day_records(store)[result.record_id]["direction"] == "VUELTA"
        assert len(desk.attendance()) == 1
        with pytest.raises(ValidationError):
            desk.select_trip("t1")
        desk.stop()


class TestAttendanceRows:
    def test_missing_passenger_and_timestamp(self):
        records = [
            AttendanceRecord(id="r1", passenger_id="p1", code="AR01", direction="IDA", timestamp=1000),
            AttendanceRecord(id="r2", passenger_id="gone", code="XX01", direction="IDA", timestamp=None),
            AttendanceRecord(id="r3", passenger_id="p1", code="AR01", direction="VUELTA", timestamp=3000),
        ]
        passengers = {"p1": Passenger(id="p1", name="Ana Ruiz", doc="1", code="AR01", photo_url="http://x/a.png")}

        rows = build_attendance_rows(records, passengers)

        assert [r.record_id for r in rows] == ["r3", "r1", "r2"]
        assert rows[0].photo_url == "http://x/a.png"
        assert rows[2].name == NO_NAME
        assert rows[2].photo_url.startswith("http")

    @pytest.mark.asyncio
    async def test_read_whole_day_across_trips(self, store):
        await store.set("attendance/2024-03-05", {
            "t1": {"r1": {"passengerId": "p1", "code": "AR01", "direction": "IDA", "timestamp": 1000}},
            "t4": {"r2": {"passengerId": "p1", "code": "AR01", "direction": "VUELTA", "timestamp": 2000}},
        })

        rows = await read_attendance(store, "2024-03-05", {})
        assert [(r.record_id, r.trip_id) for r in rows] == [("r2", "t4"), ("r1", "t1")]

        only_t1 = await read_attendance(store, "2024-03-05", {}, trip_id="t1")
        assert [r.record_id for r in only_t1] == ["r1"]

# transit_checkin/services/checkin_service.py
"""
Check-in core: resolve a scanned/typed code to a passenger, gate on the
active flag, pick the direction and append the attendance record.

Plain functions over the store client so they run against MemoryStore in
tests. The stateful per-desk flow (trip selection, auto-switch, live list)
lives in views/checkin_station.py.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from transit_checkin.config import settings
from transit_checkin.exceptions import InactivePassenger, NotFound, ValidationError
from transit_checkin.models.attendance import AttendanceRecord, attendance_path
from transit_checkin.models.passenger import Passenger, code_path, passenger_path
from transit_checkin.models.trip import Direction, Trip
from transit_checkin.store.base import StoreClient, is_valid_key
from transit_checkin.utils.logger import get_logger
from transit_checkin.utils.text import day_key, normalize_code

logger = get_logger(__name__)

NO_NAME = "(no name)"


@dataclass
class CheckInCommit:
    passenger: Passenger
    record_id: str
    day: str
    trip_id: Optional[str]
    direction: Direction


@dataclass
class AttendanceRow:
    record_id: str
    passenger_id: str
    code: str
    direction: str
    timestamp: Optional[int]
    name: str
    photo_url: str
    trip_id: Optional[str] = None


async def find_passenger_by_code(store: StoreClient, code: str) -> Passenger:
    """codes/{CODE} → passengers/{id}. A dangling index entry counts as not found."""
    code = normalize_code(code)
    if not code:
        raise ValidationError("Enter a code.")
    if not is_valid_key(code):
        raise NotFound(f"Code {code} not found.")

    passenger_id = await store.get(code_path(code))
    if not passenger_id or not is_valid_key(str(passenger_id)):
        raise NotFound(f"Code {code} not found.")

    raw = await store.get(passenger_path(str(passenger_id)))
    if not isinstance(raw, dict):
        logger.warning(f"[CHECKIN] Index entry {code} → {passenger_id} points to a missing passenger")
        raise NotFound(f"Code {code} not found.")
    return Passenger.from_store(str(passenger_id), raw)


def ensure_active(passenger: Passenger):
    if not passenger.active:
        raise InactivePassenger(f"{passenger.name or passenger.code} is INACTIVE. Not registered.")


def effective_direction(trip: Optional[Trip], selected) -> Direction:
    """The trip's IDA/VUELTA hint wins over the operator's selector."""
    forced = trip.forced_direction if trip else None
    if forced:
        return forced
    chosen = Direction.parse(selected)
    if chosen is None:
        raise ValidationError(f"Unknown direction '{selected}' (expected IDA or VUELTA)")
    return chosen


async def record_attendance(
    store: StoreClient,
    passenger: Passenger,
    direction: Direction,
    *,
    trip_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckInCommit:
    """Append one record under the local day (and trip). Never updates existing records."""
    day = day_key(now)
    record_id = store.generate_id()
    await store.set(f"{attendance_path(day, trip_id)}/{record_id}", {
        "passengerId": passenger.id,
        "code": passenger.code,
        "direction": direction.value,
        "timestamp": store.server_timestamp(),
    })
    logger.info(
        f"[CHECKIN] {passenger.name} ({passenger.code}) → {direction.value} "
        f"day={day} trip={trip_id or '-'} record={record_id}"
    )
    return CheckInCommit(passenger=passenger, record_id=record_id, day=day,
                         trip_id=trip_id, direction=direction)


def records_from_raw(raw) -> list:
    if not isinstance(raw, dict):
        return []
    return [AttendanceRecord.from_store(rid, rec) for rid, rec in raw.items() if isinstance(rec, dict)]


def build_attendance_rows(records, passengers: Dict[str, Passenger], trip_id: Optional[str] = None) -> list:
    """Join records with the passenger cache, newest first (records without timestamp last)."""
    rows = []
    for r in records:
        p = passengers.get(r.passenger_id)
        rows.append(AttendanceRow(
            record_id=r.id,
            passenger_id=r.passenger_id,
            code=r.code,
            direction=r.direction,
            timestamp=r.timestamp,
            name=(p.name if p and p.name else NO_NAME),
            photo_url=p.photo if p else settings.DEFAULT_AVATAR_URL,
            trip_id=trip_id,
        ))
    rows.sort(key=lambda row: (row.timestamp is not None, row.timestamp or 0), reverse=True)
    return rows


async def read_attendance(
    store: StoreClient,
    day: str,
    passengers: Dict[str, Passenger],
    *,
    trip_id: Optional[str] = None,
    trip_aware: bool = True,
) -> list:
    """One-off read of a day's records. Trip-aware days without a trip id list every trip."""
    if trip_id and not is_valid_key(trip_id):
        raise ValidationError(f"Invalid trip id '{trip_id}'")

    raw = await store.get(attendance_path(day, trip_id if trip_aware else None))
    if not trip_aware or trip_id:
        return build_attendance_rows(records_from_raw(raw), passengers, trip_id)

    rows = []
    for tid, records in (raw or {}).items():
        rows.extend(build_attendance_rows(records_from_raw(records), passengers, tid))
    rows.sort(key=lambda row: (row.timestamp is not None, row.timestamp or 0), reverse=True)
    return rows

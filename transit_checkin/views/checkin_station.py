# transit_checkin/views/checkin_station.py
"""
Check-In Station: one operator desk.

Per register attempt:
  idle → resolving → resolved (preview shown) → gate (inactive stops here)
       → commit → idle

Owns two standing subscriptions: the passenger cache (for names/photos in
the live list) and the attendance scope (day, or day + selected trip). At
most one attendance subscription is open; changing trip or crossing
midnight closes the old one before opening the new one.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional

from transit_checkin.config import settings
from transit_checkin.exceptions import CheckinError, ValidationError
from transit_checkin.models.attendance import attendance_path
from transit_checkin.models.passenger import PASSENGERS_PATH, Passenger
from transit_checkin.models.trip import Direction
from transit_checkin.services.checkin_service import (
    build_attendance_rows,
    effective_direction,
    ensure_active,
    find_passenger_by_code,
    record_attendance,
    records_from_raw,
)
from transit_checkin.store.base import StoreClient, Subscription
from transit_checkin.utils.logger import get_logger
from transit_checkin.utils.text import day_key, normalize_code
from transit_checkin.views.trip_directory import TripDirectory

logger = get_logger(__name__)


class StationState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


@dataclass
class CheckInResult:
    registered: bool
    message: str
    error: Optional[str] = None
    preview: Optional[dict] = None
    direction: Optional[str] = None
    record_id: Optional[str] = None
    trip_id: Optional[str] = None
    trip_switched: bool = False


class CheckInStation:
    def __init__(
        self,
        station_id: str,
        store: StoreClient,
        trips: TripDirectory,
        *,
        trip_aware: bool = True,
        direction: str = settings.DEFAULT_DIRECTION,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.station_id = station_id
        self.trip_aware = trip_aware
        self._store = store
        self._trips = trips
        self._clock = clock

        self.state = StationState.IDLE
        self.status = ""
        self.code = ""
        self.preview: Optional[dict] = None
        self.direction = Direction.parse(direction) or Direction.IDA
        self.selected_trip_id: Optional[str] = None

        self.passengers: Dict[str, Passenger] = {}
        self.rows: list = []
        self._records: list = []
        self._scope: Optional[tuple] = None
        self._attendance_sub: Optional[Subscription] = None
        self._passenger_sub: Optional[Subscription] = None

    # ── Lifecycle ─────────────────────────────────────────────────────────
    def start(self):
        if self._passenger_sub is None or not self._passenger_sub.active:
            self._passenger_sub = self._store.subscribe(PASSENGERS_PATH, self._on_passengers)
        self._rescope()

    def stop(self):
        for sub in (self._attendance_sub, self._passenger_sub):
            if sub:
                sub.close()
        self._attendance_sub = None
        self._passenger_sub = None
        self._scope = None

    @property
    def day(self) -> str:
        return self._scope[0] if self._scope else day_key(self._clock())

    # ── Operator inputs ───────────────────────────────────────────────────
    def set_direction(self, value):
        direction = Direction.parse(value)
        if direction is None:
            raise ValidationError(f"Unknown direction '{value}' (expected IDA or VUELTA)")
        self.direction = direction

    def select_trip(self, trip_id: Optional[str]):
        if not self.trip_aware:
            raise ValidationError("This station records attendance per day only; trips are not used.")
        if trip_id:
            trip = self._trips.get(trip_id)
            if trip is None:
                raise ValidationError(f"Trip '{trip_id}' is not an active trip.")
            self.selected_trip_id = trip.id
        else:
            self.selected_trip_id = None
        self._rescope()

    # ── Live attendance list ──────────────────────────────────────────────
    def _rescope(self):
        """(Re)open the attendance subscription when the day or trip changed."""
        trip_id = self.selected_trip_id if self.trip_aware else None
        scope = (day_key(self._clock()), trip_id)
        dropped = self._attendance_sub is not None and not self._attendance_sub.active
        if scope == self._scope and not dropped:
            return

        if self._attendance_sub:
            self._attendance_sub.close()
            self._attendance_sub = None
        self._scope = scope
        self._records = []
        self.rows = []

        if self.trip_aware and trip_id is None:
            return
        logger.info(f"[{self.station_id}] Watching {attendance_path(*scope)}")
        self._attendance_sub = self._store.subscribe(attendance_path(*scope), self._on_attendance)

    def _on_attendance(self, raw):
        self._records = records_from_raw(raw)
        self._render()

    def _on_passengers(self, raw):
        self.passengers = {
            pid: Passenger.from_store(pid, rec)
            for pid, rec in (raw or {}).items()
            if isinstance(rec, dict)
        }
        self._render()

    def _render(self):
        trip_id = self._scope[1] if self._scope else None
        self.rows = build_attendance_rows(self._records, self.passengers, trip_id)

    def attendance(self) -> list:
        self._rescope()
        return self.rows

    # ── Register ──────────────────────────────────────────────────────────
    async def register(self, code: str, direction: Optional[str] = None) -> CheckInResult:
        """Run one check-in attempt. Domain and store errors come back as the result."""
        self._rescope()
        self.code = code or ""
        self.preview = None
        self.state = StationState.RESOLVING
        self.status = "Looking up passenger..."
        switched = False

        try:
            if direction is not None:
                self.set_direction(direction)
            if not normalize_code(code):
                raise ValidationError("Enter a code.")
            if self.trip_aware and not self.selected_trip_id:
                raise ValidationError("Select a trip first.")

            passenger = await find_passenger_by_code(self._store, code)
            self.preview = passenger.preview()
            self.state = StationState.RESOLVED

            if (self.trip_aware and passenger.default_trip
                    and passenger.default_trip != self.selected_trip_id
                    and self._trips.get(passenger.default_trip)):
                logger.info(f"[{self.station_id}] Switching to {passenger.code}'s default trip {passenger.default_trip}")
                self.select_trip(passenger.default_trip)
                switched = True

            ensure_active(passenger)

            trip = self._trips.get(self.selected_trip_id) if self.trip_aware else None
            chosen = effective_direction(trip, self.direction)
            commit = await record_attendance(
                self._store, passenger, chosen,
                trip_id=self.selected_trip_id if self.trip_aware else None,
                now=self._clock(),
            )

        except CheckinError as e:
            if self.state != StationState.RESOLVED:
                self.state = StationState.IDLE
            self.status = e.message
            logger.warning(f"[{self.station_id}] Check-in rejected ({e.kind}): {e.message}")
            return CheckInResult(
                registered=False, message=e.message, error=e.kind, preview=self.preview,
                trip_id=self.selected_trip_id, trip_switched=switched,
            )

        self.state = StationState.IDLE
        self.code = ""
        self.status = f"Registered: {passenger.name} ({commit.direction.value})"
        return CheckInResult(
            registered=True, message=self.status, preview=self.preview,
            direction=commit.direction.value, record_id=commit.record_id,
            trip_id=commit.trip_id, trip_switched=switched,
        )

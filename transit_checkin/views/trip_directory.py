# transit_checkin/views/trip_directory.py
"""
Trip Directory: read-only live list of active routes, sorted by display
label. Feeds the default-trip selector of the roster and the trip selector
of every check-in station.
"""

from typing import Dict, Optional

from transit_checkin.models.trip import TRIPS_PATH, Trip
from transit_checkin.store.base import StoreClient, Subscription
from transit_checkin.utils.logger import get_logger
from transit_checkin.utils.text import normalize_text

logger = get_logger(__name__)


class TripDirectory:
    def __init__(self, store: StoreClient):
        self._store = store
        self._subscription: Optional[Subscription] = None
        self._trips: Dict[str, Trip] = {}
        self._ordered: list = []

    def start(self):
        if self._subscription is None or not self._subscription.active:
            self._subscription = self._store.subscribe(TRIPS_PATH, self._on_trips)

    def stop(self):
        if self._subscription:
            self._subscription.close()
            self._subscription = None

    def _on_trips(self, raw):
        trips = {
            tid: Trip.from_store(tid, rec)
            for tid, rec in (raw or {}).items()
            if isinstance(rec, dict)
        }
        self._trips = {tid: t for tid, t in trips.items() if t.active}
        self._ordered = sorted(self._trips.values(), key=lambda t: (normalize_text(t.display_label), t.id))
        logger.info(f"🚌 Trip directory: {len(self._trips)} active of {len(trips)} trips")

    def options(self) -> list:
        return list(self._ordered)

    def get(self, trip_id: Optional[str]) -> Optional[Trip]:
        """Active trip by id, or None when unknown or inactive."""
        if not trip_id:
            return None
        return self._trips.get(trip_id)

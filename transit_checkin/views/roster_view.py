# transit_checkin/views/roster_view.py
"""Live passenger cache behind the roster table."""

from typing import Dict, Optional

from transit_checkin.models.passenger import PASSENGERS_PATH, Passenger
from transit_checkin.services.roster_service import filter_passengers
from transit_checkin.store.base import StoreClient, Subscription
from transit_checkin.utils.logger import get_logger

logger = get_logger(__name__)


class RosterView:
    def __init__(self, store: StoreClient):
        self._store = store
        self._subscription: Optional[Subscription] = None
        self.passengers: Dict[str, Passenger] = {}
        self.loaded = False

    def start(self):
        if self._subscription is None or not self._subscription.active:
            self._subscription = self._store.subscribe(PASSENGERS_PATH, self._on_passengers)

    def stop(self):
        if self._subscription:
            self._subscription.close()
            self._subscription = None

    def _on_passengers(self, raw):
        self.passengers = {
            pid: Passenger.from_store(pid, rec)
            for pid, rec in (raw or {}).items()
            if isinstance(rec, dict)
        }
        self.loaded = True
        logger.debug(f"Roster cache refreshed: {len(self.passengers)} passengers")

    def rows(self, query: str = "", status: str = "all") -> list:
        return filter_passengers(self.passengers.values(), query, status)

    def get(self, passenger_id: str) -> Optional[Passenger]:
        return self.passengers.get(passenger_id)

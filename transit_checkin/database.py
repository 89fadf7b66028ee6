# transit_checkin/database.py
"""
Store connection and the container that owns every live view.
The backend is picked by STORE_BACKEND: the hosted Firebase Realtime
Database in production, an in-process MemoryStore for local runs and tests.
"""

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from transit_checkin.config import settings
from transit_checkin.store.base import StoreClient
from transit_checkin.store.firebase import FirebaseStore
from transit_checkin.store.memory import MemoryStore
from transit_checkin.utils.logger import get_logger
from transit_checkin.views.checkin_station import CheckInStation
from transit_checkin.views.roster_view import RosterView
from transit_checkin.views.trip_directory import TripDirectory

logger = get_logger(__name__)


def create_store() -> StoreClient:
    backend = settings.STORE_BACKEND.strip().lower()
    if backend == "memory":
        logger.warning("Using in-memory store, data is lost on restart")
        return MemoryStore()
    if backend == "firebase":
        return FirebaseStore(
            settings.FIREBASE_DATABASE_URL,
            auth_token=settings.FIREBASE_AUTH_TOKEN,
            timeout=settings.STORE_TIMEOUT_SECONDS,
        )
    raise ValueError(f"Unknown STORE_BACKEND '{settings.STORE_BACKEND}' (expected firebase or memory)")


@dataclass
class Container:
    store: StoreClient
    roster: RosterView
    trips: TripDirectory
    trip_aware: bool = True
    stations: dict = field(default_factory=dict)

    def station(self, station_id: str) -> CheckInStation:
        """Desk state is created on first use and kept for the life of the process."""
        station = self.stations.get(station_id)
        if station is None:
            station = CheckInStation(station_id, self.store, self.trips, trip_aware=self.trip_aware)
            self.stations[station_id] = station
            logger.info(f"🖥️  Station '{station_id}' opened ({'trip' if self.trip_aware else 'simple'} mode)")
        # Reopens subscriptions the server cancelled since the last request
        station.start()
        return station

    def ensure_live(self):
        self.roster.start()
        self.trips.start()

    async def shutdown(self):
        for station in self.stations.values():
            station.stop()
        self.stations.clear()
        self.roster.stop()
        self.trips.stop()
        await self.store.close()


def build_container(store: Optional[StoreClient] = None, *, trip_aware: Optional[bool] = None) -> Container:
    """Wire the store and start the shared live views. Call from inside the event loop."""
    store = store or create_store()
    container = Container(
        store=store,
        roster=RosterView(store),
        trips=TripDirectory(store),
        trip_aware=settings.trip_aware if trip_aware is None else trip_aware,
    )
    container.ensure_live()
    return container


async def get_container(request: Request) -> Container:
    """FastAPI dependency: the container built at startup, with its views resubscribed if needed."""
    container = request.app.state.container
    container.ensure_live()
    return container


async def get_store(request: Request) -> StoreClient:
    return request.app.state.container.store

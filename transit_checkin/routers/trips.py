# transit_checkin/routers/trips.py
"""Trip Directory — active routes for the selectors."""

from fastapi import APIRouter, Depends

from transit_checkin.database import Container, get_container
from transit_checkin.models.trip import Trip
from transit_checkin.schemas.trip import TripOut

router = APIRouter()


def trip_out(trip: Trip) -> TripOut:
    forced = trip.forced_direction
    return TripOut(
        id=trip.id,
        label=trip.display_label,
        origin=trip.origin,
        destination=trip.destination,
        direction_hint=trip.direction_hint,
        forced_direction=forced.value if forced else None,
    )


@router.get("/trips", response_model=list[TripOut], summary="Active trips, sorted by label")
def list_trips(container: Container = Depends(get_container)):
    return [trip_out(t) for t in container.trips.options()]

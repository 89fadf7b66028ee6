# transit_checkin/routers/stations.py
"""Check-In Station — per-desk trip selection, direction selector and registration."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from transit_checkin.database import Container, get_container
from transit_checkin.exceptions import status_for_kind
from transit_checkin.schemas.checkin import AttendanceRowOut, CheckInResultOut, RegisterIn, StationOut
from transit_checkin.schemas.trip import DirectionSelect, TripSelect
from transit_checkin.views.checkin_station import CheckInStation

router = APIRouter()

# Every route here is async: stations and their store subscriptions live on the event loop


def station_out(station: CheckInStation, container: Container) -> StationOut:
    rows = station.attendance()
    trip = container.trips.get(station.selected_trip_id)
    return StationOut(
        station_id=station.station_id,
        mode="trip" if station.trip_aware else "simple",
        state=station.state.value,
        status=station.status,
        day=station.day,
        direction=station.direction.value,
        selected_trip_id=station.selected_trip_id,
        selected_trip_label=trip.display_label if trip else None,
        preview=station.preview,
        attendance=[AttendanceRowOut.model_validate(r) for r in rows],
    )


@router.get("/stations/{station_id}", response_model=StationOut, summary="Station state + today's list")
async def get_station(station_id: str, container: Container = Depends(get_container)):
    return station_out(container.station(station_id), container)


@router.put("/stations/{station_id}/trip", response_model=StationOut, summary="Select the active trip")
async def select_trip(station_id: str, body: TripSelect, container: Container = Depends(get_container)):
    """Re-scopes the live attendance list to the chosen trip (null clears it)."""
    station = container.station(station_id)
    station.select_trip(body.trip_id)
    return station_out(station, container)


@router.put("/stations/{station_id}/direction", response_model=StationOut, summary="Set the direction selector")
async def select_direction(station_id: str, body: DirectionSelect, container: Container = Depends(get_container)):
    station = container.station(station_id)
    station.set_direction(body.direction)
    return station_out(station, container)


@router.post("/stations/{station_id}/register", response_model=CheckInResultOut, summary="Check in a code")
async def register(station_id: str, body: RegisterIn, container: Container = Depends(get_container)):
    """
    Resolves the code, shows the preview, and appends an attendance record
    unless the passenger is inactive. Rejections keep the 2xx body shape
    but carry the matching HTTP status (404 unknown code, 409 inactive, ...).
    """
    result = await container.station(station_id).register(body.code, body.direction)
    payload = CheckInResultOut.model_validate(result)
    if result.registered:
        return JSONResponse(status_code=201, content=payload.model_dump())
    return JSONResponse(status_code=status_for_kind(result.error), content=payload.model_dump())

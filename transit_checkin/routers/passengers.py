# transit_checkin/routers/passengers.py
"""Roster Manager — passenger CRUD and the searchable roster table."""

from fastapi import APIRouter, Depends

from transit_checkin.database import Container, get_container, get_store
from transit_checkin.exceptions import ValidationError
from transit_checkin.schemas.passenger import PassengerIn, PassengerOut, ToggleOut
from transit_checkin.services import roster_service
from transit_checkin.services.roster_service import PassengerInput
from transit_checkin.store.base import StoreClient

router = APIRouter()


@router.get("/passengers", response_model=list[PassengerOut], summary="List / search passengers")
def list_passengers(q: str = "", status: str = "all", container: Container = Depends(get_container)):
    """
    Filters the live roster cache.
    - q: substring of name, document or code (case and accent insensitive)
    - status: all | active | inactive
    """
    return [PassengerOut.model_validate(p) for p in container.roster.rows(q, status)]


@router.get("/passengers/{passenger_id}", response_model=PassengerOut)
async def get_passenger(passenger_id: str, store: StoreClient = Depends(get_store)):
    return PassengerOut.model_validate(await roster_service.get_passenger(store, passenger_id))


@router.post("/passengers", response_model=PassengerOut, status_code=201, summary="Create a passenger")
async def create_passenger(body: PassengerIn, store: StoreClient = Depends(get_store)):
    """Writes passengers/{id} and codes/{CODE} in one atomic update. 409 if the code is taken."""
    passenger = await roster_service.create_passenger(store, PassengerInput(**body.model_dump()))
    return PassengerOut.model_validate(passenger)


@router.put("/passengers/{passenger_id}", response_model=PassengerOut, summary="Update a passenger")
async def update_passenger(passenger_id: str, body: PassengerIn, store: StoreClient = Depends(get_store)):
    passenger = await roster_service.update_passenger(store, passenger_id, PassengerInput(**body.model_dump()))
    return PassengerOut.model_validate(passenger)


@router.post("/passengers/{passenger_id}/toggle", response_model=ToggleOut, summary="Activate / deactivate")
async def toggle_passenger(passenger_id: str, store: StoreClient = Depends(get_store)):
    active = await roster_service.toggle_active(store, passenger_id)
    return {"id": passenger_id, "active": active}


@router.delete("/passengers/{passenger_id}", summary="Delete a passenger")
async def delete_passenger(passenger_id: str, confirm: bool = False, store: StoreClient = Depends(get_store)):
    """Removes the passenger and its code index entry. Requires ?confirm=true."""
    if not confirm:
        raise ValidationError("Deletion must be confirmed with confirm=true")
    deleted = await roster_service.delete_passenger(store, passenger_id)
    return {"status": "deleted", "id": passenger_id, "code": deleted.code}

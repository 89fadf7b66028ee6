# transit_checkin/schemas/trip.py
from pydantic import BaseModel
from typing import Optional


class TripOut(BaseModel):
    id: str
    label: str                      # "IDA · A → B", or stored label / id
    origin: str
    destination: str
    direction_hint: str
    forced_direction: Optional[str] = None


class TripSelect(BaseModel):
    trip_id: Optional[str] = None


class DirectionSelect(BaseModel):
    direction: str

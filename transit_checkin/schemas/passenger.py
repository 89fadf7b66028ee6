# transit_checkin/schemas/passenger.py
from pydantic import BaseModel
from typing import Optional


class PassengerIn(BaseModel):
    # Blank defaults so missing fields reach the roster's own validation message
    name: str = ""
    doc: str = ""
    code: str = ""
    photo_url: str = ""
    active: bool = True
    default_trip: Optional[str] = None


class PassengerOut(BaseModel):
    id: str
    name: str
    doc: str
    code: str
    photo_url: str
    photo: str                      # photo_url or the default avatar
    active: bool
    default_trip: Optional[str]
    created_at: Optional[int]       # epoch ms

    class Config:
        from_attributes = True


class ToggleOut(BaseModel):
    id: str
    active: bool

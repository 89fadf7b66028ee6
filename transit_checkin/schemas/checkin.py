# transit_checkin/schemas/checkin.py
from pydantic import BaseModel
from typing import Optional


class RegisterIn(BaseModel):
    code: str = ""
    direction: Optional[str] = None   # overrides the station's direction selector


class PreviewOut(BaseModel):
    id: str
    name: str
    code: str
    doc: str
    active: bool
    photo_url: str


class CheckInResultOut(BaseModel):
    registered: bool
    message: str
    error: Optional[str] = None
    preview: Optional[PreviewOut] = None
    direction: Optional[str] = None
    record_id: Optional[str] = None
    trip_id: Optional[str] = None
    trip_switched: bool = False

    class Config:
        from_attributes = True


class AttendanceRowOut(BaseModel):
    record_id: str
    passenger_id: str
    code: str
    direction: str
    timestamp: Optional[int]        # epoch ms, server-assigned
    name: str
    photo_url: str
    trip_id: Optional[str] = None

    class Config:
        from_attributes = True


class StationOut(BaseModel):
    station_id: str
    mode: str                       # trip | simple
    state: str                      # idle | resolving | resolved
    status: str
    day: str
    direction: str
    selected_trip_id: Optional[str]
    selected_trip_label: Optional[str]
    preview: Optional[PreviewOut]
    attendance: list[AttendanceRowOut]

# transit_checkin/routers/attendance.py
"""Attendance history — one-off reads of any day (and trip)."""

from typing import Optional

from fastapi import APIRouter, Depends

from transit_checkin.database import Container, get_container
from transit_checkin.exceptions import ValidationError
from transit_checkin.schemas.checkin import AttendanceRowOut
from transit_checkin.services.checkin_service import read_attendance
from transit_checkin.utils.text import parse_day_key

router = APIRouter()


@router.get("/attendance/{day}", response_model=list[AttendanceRowOut], summary="Records for a day")
async def get_attendance(day: str, trip_id: Optional[str] = None, container: Container = Depends(get_container)):
    """day is YYYY-MM-DD (local calendar). Newest first."""
    try:
        day = parse_day_key(day)
    except ValueError:
        raise ValidationError(f"Invalid day '{day}' (expected YYYY-MM-DD)")
    rows = await read_attendance(
        container.store, day, container.roster.passengers,
        trip_id=trip_id, trip_aware=container.trip_aware,
    )
    return [AttendanceRowOut.model_validate(r) for r in rows]

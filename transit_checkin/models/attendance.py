# transit_checkin/models/attendance.py
"""
Append-only boarding record.
  simple variant:      attendance/{YYYY-MM-DD}/{recordId}
  trip-aware variant:  attendance/{YYYY-MM-DD}/{tripId}/{recordId}
"""

from dataclasses import dataclass
from typing import Optional

ATTENDANCE_PATH = "attendance"


@dataclass
class AttendanceRecord:
    id: str
    passenger_id: str
    code: str
    direction: str
    timestamp: Optional[int] = None   # epoch ms, assigned by the store

    @classmethod
    def from_store(cls, record_id: str, raw: Optional[dict]) -> "AttendanceRecord":
        raw = raw or {}
        timestamp = raw.get("timestamp")
        return cls(
            id=record_id,
            passenger_id=str(raw.get("passengerId") or ""),
            code=str(raw.get("code") or ""),
            direction=str(raw.get("direction") or ""),
            timestamp=timestamp if isinstance(timestamp, (int, float)) else None,
        )


def attendance_path(day: str, trip_id: Optional[str] = None) -> str:
    return f"{ATTENDANCE_PATH}/{day}/{trip_id}" if trip_id else f"{ATTENDANCE_PATH}/{day}"

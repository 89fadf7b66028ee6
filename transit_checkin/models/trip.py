# transit_checkin/models/trip.py
"""
Route stored at trips/{id}. Seeded externally, read-only for this service.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

TRIPS_PATH = "trips"


class Direction(str, Enum):
    IDA = "IDA"
    VUELTA = "VUELTA"

    @classmethod
    def parse(cls, value) -> Optional["Direction"]:
        """Recognised hint or None ('ida ' → IDA, 'express' → None)."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper()
        return cls(text) if text in cls.__members__ else None


@dataclass
class Trip:
    id: str
    label: str = ""
    origin: str = ""
    destination: str = ""
    direction_hint: str = ""        # free text, conventionally IDA / VUELTA
    active: bool = False

    @classmethod
    def from_store(cls, trip_id: str, raw: Optional[dict]) -> "Trip":
        raw = raw or {}
        return cls(
            id=trip_id,
            label=str(raw.get("label") or ""),
            origin=str(raw.get("from") or ""),
            destination=str(raw.get("to") or ""),
            direction_hint=str(raw.get("directionHint") or ""),
            active=bool(raw.get("active", False)),
        )

    def to_store(self) -> dict:
        return {
            "label": self.label or None,
            "from": self.origin,
            "to": self.destination,
            "directionHint": self.direction_hint,
            "active": self.active,
        }

    @property
    def display_label(self) -> str:
        hint = self.direction_hint.strip()
        origin = self.origin.strip()
        destination = self.destination.strip()
        if hint and origin and destination:
            return f"{hint} · {origin} → {destination}"
        return (self.label or self.id or "").strip()

    @property
    def forced_direction(self) -> Optional[Direction]:
        return Direction.parse(self.direction_hint)

# transit_checkin/models/passenger.py
"""
Passenger record stored at passengers/{id}, plus the code index entry
codes/{CODE} → id that check-in uses to resolve a scanned code.
"""

from dataclasses import dataclass
from typing import Optional

from transit_checkin.config import settings

PASSENGERS_PATH = "passengers"
CODES_PATH = "codes"


@dataclass
class Passenger:
    id: str
    name: str
    doc: str
    code: str                       # stored upper-case
    photo_url: str = ""
    active: bool = True
    default_trip: Optional[str] = None
    created_at: Optional[int] = None  # epoch ms, assigned by the store

    @property
    def photo(self) -> str:
        return self.photo_url.strip() or settings.DEFAULT_AVATAR_URL

    @classmethod
    def from_store(cls, passenger_id: str, raw: Optional[dict]) -> "Passenger":
        raw = raw or {}
        return cls(
            id=passenger_id,
            name=str(raw.get("name") or ""),
            doc=str(raw.get("doc") or ""),
            code=str(raw.get("code") or "").upper(),
            photo_url=str(raw.get("photoURL") or ""),
            active=bool(raw.get("active", False)),
            default_trip=raw.get("defaultTrip") or None,
            created_at=raw.get("createdAt"),
        )

    def to_store(self) -> dict:
        """Editable fields only; createdAt is written once by the roster on create."""
        return {
            "name": self.name,
            "doc": self.doc,
            "code": self.code,
            "photoURL": self.photo_url,
            "active": self.active,
            "defaultTrip": self.default_trip,
        }

    def preview(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "doc": self.doc,
            "active": self.active,
            "photo_url": self.photo,
        }

    def __repr__(self):
        return f"<Passenger {self.id} code={self.code} active={self.active}>"


def passenger_path(passenger_id: str) -> str:
    return f"{PASSENGERS_PATH}/{passenger_id}"


def code_path(code: str) -> str:
    return f"{CODES_PATH}/{code}"

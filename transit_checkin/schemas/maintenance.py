# transit_checkin/schemas/maintenance.py
from pydantic import BaseModel


class ReconcileOut(BaseModel):
    applied: bool
    clean: bool
    removed: dict
    added: dict
    conflicts: dict[str, list[str]]
    invalid_codes: dict[str, str]

    class Config:
        from_attributes = True

# transit_checkin/services/roster_service.py
"""
Roster Manager: create / update / toggle / delete passengers and keep the
code index (codes/{CODE} → passengerId) consistent with Passenger.code.

A new code is first claimed with a conditional write on codes/{CODE}, so
concurrent saves of the same code cannot both succeed. The record and its
index entries are then sent as ONE multi-path update at the store root. If
that update fails the claim is released; a crash in between leaves an entry
pointing at a missing passenger, which check-in treats as not found and the
index sweep removes.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from transit_checkin.exceptions import CodeConflict, NotFound, StoreUnavailable, ValidationError
from transit_checkin.models.passenger import Passenger, code_path, passenger_path
from transit_checkin.store.base import StoreClient, is_valid_key
from transit_checkin.utils.logger import get_logger
from transit_checkin.utils.text import normalize_code, normalize_text

logger = get_logger(__name__)

STATUS_FILTERS = ("all", "active", "inactive")


@dataclass
class PassengerInput:
    name: str
    doc: str
    code: str
    photo_url: str = ""
    active: bool = True
    default_trip: Optional[str] = None


def clean_input(data: PassengerInput) -> PassengerInput:
    """Trim fields, upper-case the code and reject missing or unusable values."""
    cleaned = replace(
        data,
        name=(data.name or "").strip(),
        doc=(data.doc or "").strip(),
        code=normalize_code(data.code),
        photo_url=(data.photo_url or "").strip(),
        active=bool(data.active),
        default_trip=(data.default_trip or "").strip() or None,
    )

    missing = [label for label, value in (("name", cleaned.name), ("document", cleaned.doc),
                                          ("code", cleaned.code)) if not value]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    if not is_valid_key(cleaned.code) or any(ch.isspace() for ch in cleaned.code):
        raise ValidationError(f"Code '{cleaned.code}' may not contain spaces or any of . $ # [ ] /")
    if cleaned.default_trip and not is_valid_key(cleaned.default_trip):
        raise ValidationError(f"Invalid default trip '{cleaned.default_trip}'")
    return cleaned


async def code_owner(store: StoreClient, code: str) -> Optional[str]:
    """Passenger id the index maps `code` to, or None."""
    owner = await store.get(code_path(normalize_code(code)))
    return str(owner) if owner else None


async def claim_code(store: StoreClient, code: str, passenger_id: str) -> bool:
    """
    Point codes/{CODE} at `passenger_id` with a conditional write, so two
    desks saving the same code at once cannot both win. Returns True when
    this call created the entry, False when the passenger already held it.
    """
    if await store.compare_and_set(code_path(code), None, passenger_id):
        return True
    owner = await code_owner(store, code)
    if owner == passenger_id:
        return False
    logger.warning(f"[ROSTER] Code {code} already belongs to {owner or 'another passenger'}")
    raise CodeConflict(f"Code {code} already exists. Use another one (e.g. initials + 4 digits).")


async def release_code(store: StoreClient, code: str, passenger_id: str):
    """Undo a claim after the record write failed. Leftovers are removed by the index sweep."""
    try:
        await store.compare_and_set(code_path(code), passenger_id, None)
    except StoreUnavailable:
        logger.warning(f"[ROSTER] Could not release code {code} for {passenger_id}; the index sweep will drop it")


async def get_passenger(store: StoreClient, passenger_id: str) -> Passenger:
    if not is_valid_key(passenger_id):
        raise NotFound(f"Passenger '{passenger_id}' not found")
    raw = await store.get(passenger_path(passenger_id))
    if not isinstance(raw, dict):
        raise NotFound(f"Passenger '{passenger_id}' not found")
    return Passenger.from_store(passenger_id, raw)


async def create_passenger(store: StoreClient, data: PassengerInput) -> Passenger:
    data = clean_input(data)

    passenger_id = store.generate_id()
    claimed = await claim_code(store, data.code, passenger_id)
    record = Passenger(id=passenger_id, name=data.name, doc=data.doc, code=data.code,
                       photo_url=data.photo_url, active=data.active,
                       default_trip=data.default_trip).to_store()
    record["createdAt"] = store.server_timestamp()

    try:
        await store.update("", {
            passenger_path(passenger_id): record,
            code_path(data.code): passenger_id,
        })
    except StoreUnavailable:
        if claimed:
            await release_code(store, data.code, passenger_id)
        raise
    logger.info(f"[ROSTER] Created {passenger_id} code={data.code} name={data.name!r}")
    return await get_passenger(store, passenger_id)


async def update_passenger(store: StoreClient, passenger_id: str, data: PassengerInput) -> Passenger:
    data = clean_input(data)
    current = await get_passenger(store, passenger_id)
    claimed = await claim_code(store, data.code, passenger_id)

    fields = Passenger(id=passenger_id, name=data.name, doc=data.doc, code=data.code,
                       photo_url=data.photo_url, active=data.active,
                       default_trip=data.default_trip).to_store()
    # Field-level paths merge into the record and leave createdAt alone
    changes = {f"{passenger_path(passenger_id)}/{key}": value for key, value in fields.items()}
    if current.code and current.code != data.code and is_valid_key(current.code):
        changes[code_path(current.code)] = None
    changes[code_path(data.code)] = passenger_id

    try:
        await store.update("", changes)
    except StoreUnavailable:
        if claimed:
            await release_code(store, data.code, passenger_id)
        raise
    if current.code != data.code:
        logger.info(f"[ROSTER] Updated {passenger_id} code {current.code or '-'} → {data.code}")
    else:
        logger.info(f"[ROSTER] Updated {passenger_id}")
    return await get_passenger(store, passenger_id)


async def toggle_active(store: StoreClient, passenger_id: str) -> bool:
    """Flip the active flag only. Returns the new value."""
    current = await get_passenger(store, passenger_id)
    active = not current.active
    await store.update(passenger_path(passenger_id), {"active": active})
    logger.info(f"[ROSTER] {passenger_id} is now {'active' if active else 'inactive'}")
    return active


async def delete_passenger(store: StoreClient, passenger_id: str) -> Passenger:
    current = await get_passenger(store, passenger_id)
    changes = {passenger_path(passenger_id): None}
    if current.code and is_valid_key(current.code):
        changes[code_path(current.code)] = None

    await store.update("", changes)
    logger.info(f"[ROSTER] Deleted {passenger_id} code={current.code or '-'}")
    return current


def filter_passengers(passengers: Iterable[Passenger], query: str = "", status: str = "all") -> list:
    """
    Substring search over name, document and code (case and accent
    insensitive), restricted by status, sorted by name.
    """
    if status not in STATUS_FILTERS:
        raise ValidationError(f"Unknown status filter '{status}' (expected one of {', '.join(STATUS_FILTERS)})")

    needle = normalize_text(query)
    rows = []
    for p in passengers:
        if status == "active" and not p.active:
            continue
        if status == "inactive" and p.active:
            continue
        if needle and needle not in normalize_text(f"{p.name} {p.doc} {p.code}"):
            continue
        rows.append(p)
    return sorted(rows, key=lambda p: (normalize_text(p.name), p.id))

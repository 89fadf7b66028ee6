# transit_checkin/services/code_index_service.py
"""
Code index consistency sweep.

Roster writes are atomic multi-path updates, but records written by older
clients or edited by hand in the console can still leave codes/ out of step
with passengers/. This compares both trees and repairs what is unambiguous:
  - dangling entries (missing passenger, or passenger now has another code) → removed
  - passengers whose code has no entry → entry added
  - a code claimed by several passengers → reported only, never rewritten
"""

from collections import defaultdict
from dataclasses import dataclass, field

from transit_checkin.models.passenger import CODES_PATH, PASSENGERS_PATH, code_path
from transit_checkin.store.base import StoreClient, is_valid_key
from transit_checkin.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReconcileReport:
    removed: dict = field(default_factory=dict)      # code → stale passenger id
    added: dict = field(default_factory=dict)        # code → passenger id
    conflicts: dict = field(default_factory=dict)    # code → [passenger ids]
    invalid_codes: dict = field(default_factory=dict)  # passenger id → unusable code
    applied: bool = False

    @property
    def clean(self) -> bool:
        return not (self.removed or self.added or self.conflicts or self.invalid_codes)


async def reconcile_code_index(store: StoreClient, apply: bool = True) -> ReconcileReport:
    passengers = await store.get(PASSENGERS_PATH) or {}
    index = await store.get(CODES_PATH) or {}
    report = ReconcileReport()

    claims = defaultdict(list)
    for pid, raw in passengers.items():
        if not isinstance(raw, dict):
            continue
        code = str(raw.get("code") or "").strip().upper()
        if not code:
            continue
        if not is_valid_key(code):
            report.invalid_codes[pid] = code
            continue
        claims[code].append(pid)

    for code, owners in claims.items():
        if len(owners) > 1:
            report.conflicts[code] = sorted(owners)
        elif index.get(code) != owners[0]:
            report.added[code] = owners[0]

    for code, pid in index.items():
        if code not in claims:
            report.removed[code] = pid

    changes = {code_path(code): None for code in report.removed}
    changes.update({code_path(code): pid for code, pid in report.added.items()})

    if report.conflicts:
        logger.warning(f"[INDEX] Codes claimed by several passengers: {report.conflicts}")
    if report.invalid_codes:
        logger.warning(f"[INDEX] Passengers with unusable codes: {report.invalid_codes}")

    if changes and apply:
        await store.update("", changes)
        report.applied = True
        logger.info(f"[INDEX] Repaired code index: removed={len(report.removed)} added={len(report.added)}")
    elif changes:
        logger.info(f"[INDEX] Dry run: {len(report.removed)} stale and {len(report.added)} missing entries")
    else:
        logger.info("[INDEX] Code index consistent")
    return report

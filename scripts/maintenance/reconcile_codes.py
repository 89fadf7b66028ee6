# scripts/maintenance/reconcile_codes.py
"""
Repair codes/ so every passenger code maps to its passenger and nothing else.
Usage: python scripts/maintenance/reconcile_codes.py [--dry-run]
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import argparse
import asyncio

from transit_checkin.database import create_store
from transit_checkin.exceptions import StoreUnavailable
from transit_checkin.services.code_index_service import reconcile_code_index


async def run(apply: bool):
    store = create_store()
    try:
        return await reconcile_code_index(store, apply=apply)
    finally:
        await store.close()


def main():
    parser = argparse.ArgumentParser(description="Reconcile the passenger code index")
    parser.add_argument("--dry-run", action="store_true", help="Only report what would change")
    args = parser.parse_args()

    print("🛠️  Code index reconciliation")
    print("=" * 40)
    try:
        report = asyncio.run(run(apply=not args.dry_run))
    except StoreUnavailable as e:
        print(f"❌ {e.message}")
        sys.exit(1)

    for code, pid in report.removed.items():
        print(f"   - codes/{code} → {pid} (stale)")
    for code, pid in report.added.items():
        print(f"   + codes/{code} → {pid}")
    for code, owners in report.conflicts.items():
        print(f"   ! {code} claimed by {', '.join(owners)} — fix in the roster")
    for pid, code in report.invalid_codes.items():
        print(f"   ! {pid} has unusable code {code!r}")

    if report.clean:
        print("✅ Index already consistent")
    elif report.applied:
        print("✅ Repairs written")
    else:
        print("ℹ️  Dry run, nothing written")
    sys.exit(1 if report.conflicts or report.invalid_codes else 0)


if __name__ == "__main__":
    main()

# scripts/setup/seed_trips.py
"""
Seed routes into trips/. The service itself never creates trips.
Run once per deployment, or after editing the route list.
Usage: python scripts/setup/seed_trips.py [--file trips.json] [--dry-run]

trips.json shape: {"t1": {"from": "A", "to": "B", "directionHint": "IDA", "active": true}, ...}
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import argparse
import asyncio
import json

from transit_checkin.config import settings
from transit_checkin.database import create_store
from transit_checkin.exceptions import StoreUnavailable
from transit_checkin.models.trip import TRIPS_PATH, Trip

DEFAULT_TRIPS = {
    "t-ida-centro": {"from": "Terminal", "to": "Centro", "directionHint": "IDA", "active": True},
    "t-vuelta-centro": {"from": "Centro", "to": "Terminal", "directionHint": "VUELTA", "active": True},
}


async def seed(trips: dict, dry_run: bool):
    store = create_store()
    try:
        changes = {}
        for trip_id, raw in trips.items():
            trip = Trip.from_store(trip_id, raw)
            print(f"   {'·' if dry_run else '✓'} {trip_id}: {trip.display_label} ({'active' if trip.active else 'inactive'})")
            changes[trip_id] = trip.to_store()
        if not dry_run:
            await store.update(TRIPS_PATH, changes)
    finally:
        await store.close()


def main():
    parser = argparse.ArgumentParser(description="Seed trips into the realtime store")
    parser.add_argument("--file", help="JSON file with trips keyed by id")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    trips = DEFAULT_TRIPS
    if args.file:
        with open(args.file, encoding="utf-8") as f:
            trips = json.load(f)

    print("🚌 Trip seeding")
    print("=" * 40)
    print(f"🗄️  Store: {settings.STORE_BACKEND} {settings.FIREBASE_DATABASE_URL}")

    try:
        asyncio.run(seed(trips, args.dry_run))
    except StoreUnavailable as e:
        print(f"❌ {e.message}")
        sys.exit(1)

    print(f"\n🎉 {len(trips)} trip(s) {'checked' if args.dry_run else 'written'}.")
    print("\nNext step — start the server:")
    print(f"   uvicorn transit_checkin.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()

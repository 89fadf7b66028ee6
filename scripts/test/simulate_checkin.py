# scripts/test/simulate_checkin.py
"""Drive a running backend: pick a trip on a station and register a code."""

import argparse
import requests

BACKEND_URL = "http://127.0.0.1:8080/api/v1"


def simulate(station, code, trip_id=None, direction=None, api_key=None):
    headers = {"X-API-Key": api_key} if api_key else {}

    if trip_id:
        resp = requests.put(f"{BACKEND_URL}/stations/{station}/trip", json={"trip_id": trip_id},
                            headers=headers, timeout=10)
        print(f"🚌 select trip {trip_id} → HTTP {resp.status_code}")
        if resp.status_code != 200:
            print(f"   {resp.json()}")
            return

    body = {"code": code}
    if direction:
        body["direction"] = direction
    resp = requests.post(f"{BACKEND_URL}/stations/{station}/register", json=body, headers=headers, timeout=10)
    result = resp.json()
    mark = "✅" if result.get("registered") else "⚠️ "
    print(f"{mark} {code} → HTTP {resp.status_code}: {result.get('message')}")

    resp = requests.get(f"{BACKEND_URL}/stations/{station}", headers=headers, timeout=10)
    for row in resp.json().get("attendance", [])[:5]:
        print(f"   {row['code']:<10} {row['name']:<24} {row['direction']}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate a front-desk check-in")
    parser.add_argument("--station", default="desk-1")
    parser.add_argument("--code", default="AR01")
    parser.add_argument("--trip")
    parser.add_argument("--direction", choices=["IDA", "VUELTA"])
    parser.add_argument("--api-key")
    args = parser.parse_args()

    simulate(args.station, args.code, args.trip, args.direction, args.api_key)

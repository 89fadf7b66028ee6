# transit_checkin/routers/health.py
"""
System health check endpoint.
Returns status of backend + store reachability + live view state.
"""

import requests
from fastapi import APIRouter, Depends
from transit_checkin.database import Container, get_container
from transit_checkin.config import settings
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(container: Container = Depends(get_container)):
    """
    Returns:
    - Backend status
    - Store reachability (shallow read of the database root)
    - Cached roster / trip counts and open stations
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "store": "unknown",
        "store_backend": settings.STORE_BACKEND,
        "mode": "trip" if container.trip_aware else "simple",
        "passengers_cached": len(container.roster.passengers),
        "active_trips": len(container.trips.options()),
        "stations": sorted(container.stations),
    }

    if settings.STORE_BACKEND.strip().lower() != "firebase":
        result["store"] = "ok"
        return result

    params = {"shallow": "true"}
    if settings.FIREBASE_AUTH_TOKEN:
        params["auth"] = settings.FIREBASE_AUTH_TOKEN
    try:
        resp = requests.get(
            f"{settings.FIREBASE_DATABASE_URL.rstrip('/')}/.json",
            params=params,
            timeout=3,
        )
        result["store"] = "ok" if resp.status_code == 200 else f"http_{resp.status_code}"
        if resp.status_code != 200:
            result["status"] = "degraded"
    except requests.exceptions.ConnectionError:
        result["store"] = "unreachable"
        result["status"] = "degraded"
    except requests.exceptions.RequestException as e:
        result["store"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result

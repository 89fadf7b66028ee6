# transit_checkin/main.py
"""
FastAPI application entry point.
Includes security middleware, error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from transit_checkin.routers import passengers, trips, stations, attendance, maintenance, health
from transit_checkin.database import build_container
from transit_checkin.config import settings
from transit_checkin.exceptions import CheckinError, StoreUnavailable
from transit_checkin.services.code_index_service import reconcile_code_index
from transit_checkin.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Transit Check-In API",
    description="Passenger roster, trip directory and boarding check-in over the realtime store.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (front-desk and admin pages are served from another origin) ────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the front-end origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key check.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(CheckinError)
async def checkin_error_handler(request: Request, exc: CheckinError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(passengers.router,  prefix="/api/v1", tags=["🧑 Roster"])
app.include_router(trips.router,       prefix="/api/v1", tags=["🚌 Trips"])
app.include_router(stations.router,    prefix="/api/v1", tags=["🎫 Check-In"])
app.include_router(attendance.router,  prefix="/api/v1", tags=["📋 Attendance"])
app.include_router(maintenance.router, prefix="/api/v1", tags=["🛠️  Maintenance"])
app.include_router(health.router,      prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Transit Check-In starting up...")
    app.state.container = build_container()
    logger.info(f"🗄️  Store: {settings.STORE_BACKEND} | mode: {settings.ATTENDANCE_MODE}")

    if settings.RECONCILE_ON_STARTUP:
        try:
            report = await reconcile_code_index(app.state.container.store)
            logger.info(f"✅ Code index sweep done (clean={report.clean})")
        except StoreUnavailable as e:
            logger.error(f"❌ Code index sweep skipped: {e.message}")

    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Transit Check-In shutting down...")
    container = getattr(app.state, "container", None)
    if container:
        await container.shutdown()

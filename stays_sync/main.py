import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stays_sync.config import ALLOWED_ORIGINS, SCHEDULER_ENABLED
from stays_sync.dependencies import build_stays_client, require_api_key
from stays_sync.logging_config import setup_logging
from stays_sync.middleware import RequestIDMiddleware
from stays_sync.routes.calendar import router as calendar_router
from stays_sync.routes.dashboard import router as dashboard_router
from stays_sync.routes.financials import router as financials_router
from stays_sync.routes.guests import router as guests_router
from stays_sync.routes.health import router as health_router
from stays_sync.routes.metrics import router as metrics_router
from stays_sync.routes.statistics import router as statistics_router
from stays_sync.routes.sync import router as sync_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Stays Sync API",
    description="Stays.net reservation mirror: sync control and occupancy/revenue analytics",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Probes and metrics stay open; everything else needs X-API-Key
protected = [Depends(require_api_key)]

app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(sync_router, tags=["Sync"], dependencies=protected)
app.include_router(dashboard_router, tags=["Dashboard"], dependencies=protected)
app.include_router(calendar_router, tags=["Calendar"], dependencies=protected)
app.include_router(financials_router, tags=["Financials"], dependencies=protected)
app.include_router(statistics_router, tags=["Statistics"], dependencies=protected)
app.include_router(guests_router, tags=["Guests"], dependencies=protected)


@app.on_event("startup")
def startup_event() -> None:
    """Start the background scheduler unless disabled."""
    logger.info("FastAPI application starting up...")

    if not SCHEDULER_ENABLED:
        logger.info("scheduler_disabled")
        return

    from stays_sync.db.engine import get_engine
    from stays_sync.services.scheduler import build_scheduler

    scheduler = build_scheduler(get_engine(), build_stays_client)
    scheduler.start()
    app.state.scheduler = scheduler
    logger.info("scheduler_started", jobs=[job.id for job in scheduler.get_jobs()])


@app.on_event("shutdown")
def shutdown_event() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")

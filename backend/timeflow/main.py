import os
import logging
import threading
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from timeflow.core.config import settings
from timeflow.api import analytics as analytics_api

logger = logging.getLogger(__name__)


def init_database():
    """Create analytics tables on startup (no-op for existing tables)."""
    from timeflow.core.database import engine, Base
    import timeflow.models  # noqa: F401  ensure tables are registered

    logger.info("Creating database tables...")
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ready")
    except Exception as e:
        logger.error(f"Table init error: {e}")


def _run_anomaly_scans(stop: threading.Event):
    """Re-run anomaly detection for every company on a fixed interval."""
    from timeflow.core.database import SessionLocal
    from timeflow.services.anomaly_detection import run_scheduled_scan

    if stop.wait(settings.ANOMALY_SCAN_STARTUP_DELAY_SECONDS):
        return
    while True:
        try:
            results = run_scheduled_scan(SessionLocal)
            flagged = {cid: r for cid, r in results.items() if r.get("anomalies")}
            logger.info(f"Anomaly scan finished: {len(results)} companies, {len(flagged)} with anomalies")
        except Exception as e:
            logger.error(f"Anomaly scan scheduler error: {e}", exc_info=True)
        if stop.wait(settings.ANOMALY_SCAN_INTERVAL_SECONDS):
            return


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run database init on startup + start the periodic anomaly scan."""
    init_database()

    stop = threading.Event()
    if settings.ANOMALY_SCAN_ENABLED:
        scan_thread = threading.Thread(target=_run_anomaly_scans, args=(stop,), daemon=True)
        scan_thread.start()
        logger.info(
            f"Background anomaly scan started (every {settings.ANOMALY_SCAN_INTERVAL_SECONDS}s)"
        )

    yield

    stop.set()


# Disable API docs in production
docs_url = "/docs" if settings.ENVIRONMENT != "production" else None
redoc_url = "/redoc" if settings.ENVIRONMENT != "production" else None

app = FastAPI(
    title=settings.APP_NAME,
    description="TimeFlow - Workforce Integrity Analytics API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url,
)


# Global exception handler - always return JSON (never plain text)
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error("Unhandled exception: %s", exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal error: {str(exc)}"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    error = analytics_api.INVALID_BODY_ERRORS.get(request.url.path)
    if error is None:
        return await request_validation_exception_handler(request, exc)
    logger.warning(f"Unusable request body for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": error})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


# CORS - allow frontend URL + local dev
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
frontend_url = settings.FRONTEND_URL or os.environ.get("FRONTEND_URL", "")
if frontend_url and frontend_url not in allowed_origins:
    allowed_origins.append(frontend_url)
    if not frontend_url.startswith("https"):
        allowed_origins.append(frontend_url.replace("http://", "https://"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "timeflow-analytics-api", "version": "1.0.0"}


@app.get("/")
def root():
    return {"message": "TimeFlow Analytics API", "version": "1.0.0", "docs": "/docs"}


# Include routers
app.include_router(analytics_api.router)

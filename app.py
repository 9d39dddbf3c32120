"""
PillTrack Backend
Main FastAPI application for the personal medication tracker
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime

# Configuration and database
from config import settings, tracker_config
from database import init_db, DatabaseHealthCheck

from api import include_routers
from api.deps import services

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    # Initialize database
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    scanner = services.get_reminder_scanner()
    if settings.SCANNER_ENABLED:
        scanner.start()
    else:
        logger.info("Reminder scanner disabled")

    yield

    # Shutdown
    scanner.shutdown()
    logger.info(f"Shutting down {settings.APP_NAME}")


# ==================== APP INITIALIZATION ====================

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## PillTrack API

    Personal medication tracker.

    ### Features
    - **Schedule**: Daily dose times per medication within a start/end window
    - **Today**: The next dose each medication is waiting on, upcoming or overdue
    - **Taken / Dismiss**: Record a dose or skip a single occurrence
    - **Stats**: Adherence over the last week and doses still due today
    - **Reminders**: Background scan for doses coming due in the next 15 minutes
    - **Calendar**: Export upcoming doses as calendar events
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Attach modular API routers (prefix /api/v1)
include_routers(app, prefix=settings.API_PREFIX)


# ==================== EXCEPTION HANDLERS ====================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.detail,
            "status_code": exc.status_code,
            "timestamp": datetime.now().isoformat()
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "message": "An unexpected error occurred" if not settings.DEBUG else str(exc),
            "status_code": 500,
            "timestamp": datetime.now().isoformat()
        }
    )


# ==================== HEALTH ENDPOINTS ====================

@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic health check"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check endpoint"""
    db_connected = DatabaseHealthCheck.is_connected()
    scanner = services.get_reminder_scanner()

    return {
        "status": "healthy" if db_connected else "degraded",
        "timestamp": datetime.now().isoformat(),
        "checks": {
            "database": {
                "status": "up" if db_connected else "down",
                "type": "sqlite" if "sqlite" in settings.DATABASE_URL else "postgresql"
            },
            "scanner": {
                "enabled": settings.SCANNER_ENABLED,
                "running": scanner.is_running,
                "state": scanner.state.value
            }
        },
        "config": {
            "scan_interval_minutes": settings.SCANNER_INTERVAL_MINUTES,
            "reminder_lookahead_minutes": settings.REMINDER_LOOKAHEAD_MINUTES,
            "adherence_window_days": settings.ADHERENCE_WINDOW_DAYS,
            "frequencies": tracker_config.FREQUENCIES
        },
        "version": settings.APP_VERSION,
        "environment": settings.ENV
    }


# ==================== SCANNER ENDPOINTS ====================

@app.get(f"{settings.API_PREFIX}/scanner/status", tags=["Scanner"])
async def get_scanner_status():
    """Reminder scanner status"""
    scanner = services.get_reminder_scanner()
    return {
        "enabled": settings.SCANNER_ENABLED,
        "running": scanner.is_running,
        "state": scanner.state.value,
        "interval_minutes": scanner.interval_minutes,
        "lookahead_minutes": scanner.lookahead_minutes
    }


@app.post(f"{settings.API_PREFIX}/scanner/run", tags=["Scanner"])
async def run_scanner():
    """Run one reminder sweep immediately and return its report"""
    scanner = services.get_reminder_scanner()
    report = await asyncio.to_thread(scanner.scan)
    return report.to_dict()


# ==================== MAIN ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )

"""
Resto Booking - FastAPI Backend Application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import structlog

from resto_booking.config import settings
from resto_booking.errors import BookingError
from resto_booking.logging_config import configure_logging
from resto_booking.api import auth, restaurants, tables, schedules, reservations, calendar, public

configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Resto Booking API", version="1.0.0")
    yield
    logger.info("Shutting down Resto Booking API")


# Create FastAPI application
app = FastAPI(
    title="Resto Booking",
    description="Reservation lifecycle and table assignment for restaurants",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Map booking errors to their HTTP status and a machine-readable code"""
    logger.info(
        "Request rejected",
        path=request.url.path,
        error=exc.code,
        detail=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from resto_booking.database import SessionLocal

    checks = {}

    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    # Check Redis
    try:
        from resto_booking.jobs.celery_app import celery_app
        celery_app.control.ping(timeout=1)
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"failed: {str(e)}"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Include API routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(restaurants.router, prefix="/restaurants", tags=["Restaurants"])
app.include_router(tables.router, prefix="/restaurants/{restaurant_id}/tables", tags=["Tables"])
app.include_router(schedules.router, prefix="/restaurants/{restaurant_id}/schedules", tags=["Schedules"])
app.include_router(schedules.blocks_router, prefix="/restaurants/{restaurant_id}/blocks", tags=["Blocks"])
app.include_router(reservations.router, prefix="/restaurants/{restaurant_id}/reservations", tags=["Reservations"])
app.include_router(calendar.router, prefix="/restaurants/{restaurant_id}", tags=["Calendar"])

# Diner-facing routes
app.include_router(public.router, prefix="/public/restaurants", tags=["Public"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "resto_booking.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )

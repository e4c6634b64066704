"""
Main FastAPI Application
Entry point for the Family Foodie API.

This module creates and configures the FastAPI application instance,
sets up middleware, serves locally stored files and defines the health
check endpoint.

Run with:
    uvicorn foodie.main:app --reload
"""

import os

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from foodie.core.config import settings
from foodie.db.seed import seed_lookups
from foodie.db.session import SessionLocal, engine
from foodie.middleware.cors import setup_cors
from foodie.middleware.error_handler import ErrorHandlerMiddleware
from foodie.models import Base
from foodie.services.error_logging import configure_error_logging
from foodie.services.migration_service import run_migrations
from foodie.services.storage import storage_mode


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    description="""
    Family Foodie API - household meal planning.

    Features:
    - Households with invitations and Google sign-in
    - Recipe collections, shared publicly and subscribed to
    - Copy-on-write editing of recipes owned by other households
    - Weekly meal plans with a randomizer
    - Aggregated weekly shopping lists
    - Feedback and admin tooling
    """
)


# Setup CORS middleware
# Must be called before adding routes
setup_cors(app)

# Setup error handler middleware
# Catches all unhandled exceptions and logs them
app.add_middleware(ErrorHandlerMiddleware)


# Local storage serves uploaded images and PDFs directly
if storage_mode() == "local":
    os.makedirs(settings.STATIC_DIR, exist_ok=True)
    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")


@app.on_event("startup")
async def startup_event():
    """
    Application startup handler.

    Tasks performed:
    - Create all database tables if they don't exist
    - Seed the season and protein/carb lookup tables
    - Apply pending SQL migrations (when RUN_MIGRATIONS_ON_STARTUP is set)
    - Configure error logging system
    """
    Base.metadata.create_all(bind=engine)
    print("✓ Database tables created/verified")

    db = SessionLocal()
    try:
        stats = seed_lookups(db)
        print(f"✓ Lookup tables seeded ({stats['inserted']} inserted)")
    finally:
        db.close()

    if settings.RUN_MIGRATIONS_ON_STARTUP:
        result = run_migrations(engine)
        if result["success"]:
            print(f"✓ {result['message']}")
        else:
            print(f"  ⚠ Migration {result['failed']} failed: {result['error']}")

    if configure_error_logging(SessionLocal):
        print("✓ Error logging system configured")
    else:
        print(f"  ⚠ Log directory {settings.LOGS_DIR} not writable, file logging disabled")

    print(f"✓ File storage: {storage_mode()}")
    print("✓ API documentation available at http://localhost:8000/docs")


@app.on_event("shutdown")
async def shutdown_event():
    print("✓ Application shutdown complete")


@app.get(
    "/health",
    tags=["Health"],
    summary="Health Check",
    description="Simple endpoint to verify API is running"
)
async def health_check():
    """
    Health check endpoint.

    Example Response:
        {
            "status": "ok",
            "version": "1.0.0",
            "api": "Family Foodie API"
        }
    """
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "version": "1.0.0",
            "api": settings.PROJECT_NAME
        }
    )


@app.get("/", tags=["Root"], summary="API Root")
async def root():
    return {
        "message": "Welcome to Family Foodie API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health"
    }


# Include API v1 router
# All v1 endpoints are prefixed with /api/v1
from foodie.api.v1.router import api_router  # noqa: E402

app.include_router(
    api_router,
    prefix=f"/api/{settings.API_VERSION}",
)

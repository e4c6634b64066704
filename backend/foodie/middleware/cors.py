"""
CORS Middleware Configuration
Lets the web frontend call the API from another origin.

Allowed origins come from settings.CORS_ORIGINS so each deployment lists
only its own frontend. Credentials are allowed because the session cookie
must travel with cross-origin requests.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from foodie.core.config import settings


def setup_cors(app: FastAPI) -> None:
    """
    Configure CORS middleware for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,  # Frontend URLs from configuration
        allow_credentials=True,  # Session cookie and Authorization header
        allow_methods=["*"],
        allow_headers=["*"],
    )

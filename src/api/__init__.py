"""
API package for the Energy Measurements API.
Contains FastAPI route handlers and API-related utilities.
"""

from .routes import router

__all__ = [
    "router",
]

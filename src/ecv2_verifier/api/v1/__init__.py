# src/ecv2_verifier/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import callbacks_router

__all__ = [
    "callbacks_router",
]

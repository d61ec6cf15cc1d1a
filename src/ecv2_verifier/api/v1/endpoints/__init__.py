# src/ecv2_verifier/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .callbacks import router as callbacks_router

__all__ = [
    "callbacks_router",
]

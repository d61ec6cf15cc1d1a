# src/ecv2_verifier/main.py
"""Main entry point for the ECv2 callback verifier service."""

from __future__ import annotations

from fastapi import FastAPI

from ecv2_verifier.api.v1 import callbacks_router
from ecv2_verifier.core.settings import settings
from ecv2_verifier.services.trust_anchors import get_trust_anchor_source

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Verifies ECv2SigningOnly callback payloads",
    version=settings.app_version,
)

# Include API routers
app.include_router(callbacks_router, prefix="/api/v1")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_trust_anchor_source().client.close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ecv2_verifier.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

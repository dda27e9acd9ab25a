"""API Routes."""

from fastapi import APIRouter

from .health import router as health_router
from .lifecycle import router as lifecycle_router
from .migrations import router as migrations_router

# Create main API router
api_router = APIRouter()

# Include route modules
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(lifecycle_router)
api_router.include_router(migrations_router)

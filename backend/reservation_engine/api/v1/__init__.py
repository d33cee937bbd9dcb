"""Versioned API router."""

from fastapi import APIRouter

from . import areas, health, reservations

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(
    reservations.router, prefix="/reservations", tags=["reservations"]
)
router.include_router(areas.router, prefix="/areas", tags=["areas"])

__all__ = ["router"]

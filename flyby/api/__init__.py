"""API routers for the FlyBy tracker."""

from fastapi import APIRouter

from .airports import router as airports_router
from .flights import router as flights_router
from .health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(flights_router)
api_router.include_router(airports_router)

__all__ = ["api_router"]

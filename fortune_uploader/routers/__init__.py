"""Router package exposing all API routers."""

from fastapi import APIRouter

from .bridge.router import router as bridge_router

router = APIRouter()
router.include_router(bridge_router)

__all__ = ["router", "bridge_router"]

from fastapi import APIRouter

from .routes import ai, auth, health, plans

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(plans.router, prefix="/plans", tags=["plans"])
api_router.include_router(ai.router, prefix="/ai", tags=["ai"])

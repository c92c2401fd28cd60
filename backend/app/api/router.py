"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from app.api import health, me, generation, consent, credits, artifacts

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(me.router, prefix="/me", tags=["me"])
api_router.include_router(generation.router, tags=["generation"])
api_router.include_router(consent.router, tags=["consent"])
api_router.include_router(credits.router, tags=["credits"])
api_router.include_router(artifacts.router, tags=["history"])

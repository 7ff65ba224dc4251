"""
API router - aggregates all endpoint routers.
"""

from fastapi import APIRouter

from servicedesk.api.endpoints import health_router, ordens_servico_router

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(
    ordens_servico_router, prefix="/ordens-servico", tags=["ordens-servico"]
)

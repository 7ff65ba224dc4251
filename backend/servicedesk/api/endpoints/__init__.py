"""
Convenience exports for the endpoint routers aggregated in ``api.router``.
"""

from .health import router as health_router
from .ordens_servico import router as ordens_servico_router

__all__ = [
    "health_router",
    "ordens_servico_router",
]

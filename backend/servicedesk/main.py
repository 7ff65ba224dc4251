"""
Service Desk API - Main Application Entry Point
"""

from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app
from slowapi.errors import RateLimitExceeded

from servicedesk.api.error_handlers import register_error_handlers
from servicedesk.api.router import api_router
from servicedesk.core.config import settings
from servicedesk.core.database import close_db, init_db
from servicedesk.core.logging import RequestContextMiddleware, setup_logging
from servicedesk.core.metrics import MetricsMiddleware
from servicedesk.core.rate_limiter import RateLimitMiddleware, limiter, rate_limit_handler

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown."""
    # Startup
    setup_logging()
    await init_db()
    yield
    # Shutdown
    await close_db()


app = FastAPI(
    title="Sistema de Ordem de Serviços",
    description="Help-desk service orders: CRUD, status tracking and PDF reports",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Middleware (last added runs first)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Mount Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Single-page frontend
app.mount("/ui", StaticFiles(directory=STATIC_DIR, html=True), name="ui")

# Include API routes
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "OK", "message": "Servidor funcionando corretamente"}


@app.get("/")
async def root():
    """Root endpoint with system information."""
    return {
        "message": "API do Sistema de Ordem de Serviços",
        "version": settings.APP_VERSION,
        "endpoints": {
            "ordensServico": f"{settings.API_PREFIX}/ordens-servico",
        },
        "ui": "/ui/",
        "docs": "/api/docs",
        "health": "/health",
        "metrics": "/metrics",
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "servicedesk.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )

"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import ApiServices
from src.api.routes import admin, ebay_notifications, health

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("listing_api_starting")
    yield
    logger.info("listing_api_stopping")


def create_app(services: ApiServices | None = None) -> FastAPI:
    app = FastAPI(
        title="eBay Listing Tracker",
        description="Admin and eBay notification endpoints for the listing tracker bot.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(ebay_notifications.router)
    app.include_router(admin.router)

    app.state.services = services
    return app


def build_server(app: FastAPI, host: str, port: int) -> uvicorn.Server:
    """uvicorn server that can be awaited on an already-running event loop."""
    config = uvicorn.Config(app, host=host, port=port, log_config=None, lifespan="on")
    return uvicorn.Server(config)


app = create_app()

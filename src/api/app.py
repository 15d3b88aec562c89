"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.auth import router as auth_router
from src.api.proxy import router as proxy_router
from src.api.storage import router as storage_router
from src.client.config import get_api_config, get_storage_config, log_config_status

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    # Startup
    logger.info("Starting BizChat API...")
    log_config_status(get_api_config(), get_storage_config())
    yield
    # Shutdown
    logger.info("Shutting down BizChat API...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="BizChat API",
        description=(
            "Companion API for the BizChat business chat front-end. "
            "Proxies calls to the session-oriented chat backend, stores uploaded "
            "documents in S3 and forwards account registration."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.include_router(proxy_router)
    application.include_router(storage_router)
    application.include_router(auth_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "bizchat-frontend"}

    return application


app = create_app()

# ABOUTME: FastAPI application factory for the grabber web API.
# ABOUTME: Holds one shared HTMLGrabber for the lifetime of the app.

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from html_grabber.config import get_settings
from html_grabber.logs import configure_logging
from html_grabber.services.grabber import HTMLGrabber

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan context."""
    logger.info("app_startup")
    yield
    logger.info("app_shutdown")


def create_app(grabber: HTMLGrabber | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(get_settings().log_level)

    app = FastAPI(
        title="html-grabber",
        description="Extract readable content from web pages",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.grabber = grabber or HTMLGrabber()

    from html_grabber.web.routes import router

    app.include_router(router)

    return app


app = create_app()

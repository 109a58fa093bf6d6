from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import reading_log_error_handler, router
from logging_config import configure_logging
from services.dispatcher import build_default_dispatcher
from services.errors import ReadingLogError
from settings import DEFAULT_CREDENTIALS, get_settings, parse_credentials

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    build_default_dispatcher()
    if dict(get_settings().credentials) == dict(parse_credentials(DEFAULT_CREDENTIALS)):
        logger.warning("Serving with the built-in example credentials; set READING_LOG_CREDENTIALS.")
    try:
        yield
    finally:
        build_default_dispatcher.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Reading Log",
        description="Credential-gated, bounded history of device location and geiger readings.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(ReadingLogError, reading_log_error_handler)
    app.include_router(router)
    return app

app = create_app()

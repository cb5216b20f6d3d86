"""
FastAPI application with assembled routers.

Initializes the FastAPI app, owns the database engine and broker connection
for the process lifetime, and configures the uvicorn server.

Dependencies: fastapi, uvicorn, docflow.api.routers, docflow.boundary
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docflow.boundary.broker.rabbitmq_broker import RabbitMQBroker
from docflow.boundary.broker.topology import QueueTopology
from docflow.boundary.db.connection import get_async_engine, get_async_session_factory
from docflow.configs import get_settings
from docflow.observability.logger import configure_logging
from docflow.observability.middleware import (
    CORRELATION_HEADER,
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

from .routers import health_router, jobs_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup builds the engine and session factory and connects the broker
    (bounded retry); shutdown releases both.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    # Startup
    engine = get_async_engine(settings.database)
    app.state.session_factory = get_async_session_factory(engine)
    broker = RabbitMQBroker(
        settings.broker.rabbitmq_url,
        QueueTopology.from_settings(settings.broker),
        connect_retries=settings.broker.api_connect_retries,
        connect_wait=settings.broker.api_connect_wait,
    )
    broker.connect()
    app.state.broker = broker
    logger.info("%s:lifespan - API resources ready", __name__)

    yield

    # Shutdown
    broker.close()
    app.state.broker = None
    app.state.session_factory = None
    await engine.dispose()
    logger.info("%s:lifespan - API resources released", __name__)


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Docflow Job API",
        description="Queued document pipeline: ingest, OCR and NLP stages with job polling",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.include_router(health_router, prefix="/api/v1")
    app.include_router(jobs_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "docflow.api.main:app",
        host="0.0.0.0",
        port=8000,
    )

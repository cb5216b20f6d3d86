"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: docflow.application, docflow.boundary
System role: DI container for service injection
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.application.services import JobService
from docflow.boundary.broker.rabbitmq_broker import RabbitMQBroker
from docflow.boundary.db import get_async_db


def get_broker(request: Request) -> RabbitMQBroker | None:
    """
    Get the broker connected during application startup.

    Returns:
        RabbitMQBroker | None: None when the lifespan has not run
    """
    return getattr(request.app.state, "broker", None)


def get_job_service(
    db: AsyncSession = Depends(get_async_db),
    broker: RabbitMQBroker | None = Depends(get_broker),
) -> JobService:
    """
    Get job service instance.

    Args:
        db: Async database session (injected via Depends)
        broker: Process-wide broker handle (injected via Depends)

    Returns:
        JobService: Job service instance
    """
    return JobService(db=db, broker=broker)

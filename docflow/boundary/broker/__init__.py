"""Message broker boundary: queue topology and RabbitMQ adapter."""

from docflow.boundary.broker.connection import connect_with_retry
from docflow.boundary.broker.rabbitmq_broker import (
    Delivery,
    DeliveryHandler,
    RabbitMQBroker,
)
from docflow.boundary.broker.topology import QueueTopology

__all__ = [
    "Delivery",
    "DeliveryHandler",
    "QueueTopology",
    "RabbitMQBroker",
    "connect_with_retry",
]

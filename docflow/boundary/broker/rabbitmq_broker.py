"""
RabbitMQ broker adapter.

Owns one kombu connection and channel for the lifetime of a process. The
API uses it to publish ingest messages; each stage worker uses it to consume
its queue with manual acknowledgement and a prefetch limit, and to publish
to the next stage.

Dependencies: kombu, docflow.boundary.broker
System role: Message broker access for producers and stage workers
"""

import logging
from typing import Any, Callable

from kombu import Consumer, Producer
from kombu.message import Message

from docflow.boundary.broker.connection import connect_with_retry
from docflow.boundary.broker.topology import QueueTopology

logger = logging.getLogger(__name__)

PERSISTENT_DELIVERY_MODE = 2


class Delivery:
    """
    A message checked out from a queue, pending acknowledgement.

    Wraps the transport message so handlers only see the raw body, the
    correlation ID and the ack/nack decision.
    """

    def __init__(self, message: Message, queue: str) -> None:
        self._message = message
        self.queue = queue

    @property
    def body(self) -> bytes:
        body = self._message.body
        return body.encode("utf-8") if isinstance(body, str) else body

    @property
    def correlation_id(self) -> str | None:
        return self._message.properties.get("correlation_id")

    @property
    def redelivered(self) -> bool:
        return bool(self._message.delivery_info.get("redelivered", False))

    def ack(self) -> None:
        """Acknowledge; the broker forgets the message."""
        self._message.ack()

    def nack(self, requeue: bool) -> None:
        """
        Negatively acknowledge.

        Args:
            requeue: True redelivers the message; False routes it to the
                queue's dead-letter queue
        """
        self._message.reject(requeue=requeue)


DeliveryHandler = Callable[[Delivery], None]


class RabbitMQBroker:
    """Explicitly owned broker handle: connect at start, close at stop."""

    def __init__(
        self,
        url: str,
        topology: QueueTopology,
        connect_retries: int,
        connect_wait: float,
    ) -> None:
        """
        Initialize broker handle without connecting.

        Args:
            url: AMQP URL
            topology: Queue names and dead-letter wiring
            connect_retries: Startup connection attempts
            connect_wait: Fixed seconds between attempts
        """
        self.topology = topology
        self._url = url
        self._connect_retries = connect_retries
        self._connect_wait = connect_wait
        self._connection = None
        self._channel = None
        self._producer: Producer | None = None
        self._consumers: list[Consumer] = []
        self._should_stop = False

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.connected

    def connect(self) -> None:
        """
        Connect (with bounded retry), open a channel and declare the topology.

        Raises:
            BrokerUnavailableError: Broker unreachable after all attempts
        """
        self._connection = connect_with_retry(
            self._url, self._connect_retries, self._connect_wait
        )
        self._channel = self._connection.channel()
        self._producer = Producer(self._channel)
        self.declare_topology()

    def ensure_connected(self) -> None:
        """Connect on first use."""
        if not self.is_connected:
            self.connect()

    def declare_topology(self) -> None:
        """Declare every queue of the topology. Safe to repeat."""
        for queue in self.topology.kombu_queues():
            queue(self._channel).declare()
        logger.info(
            "%s:declare_topology - Queues declared",
            __name__,
            extra={"work_queues": list(self.topology.work_queues)},
        )

    def publish(self, queue: str, message: dict[str, Any], correlation_id: str) -> None:
        """
        Publish a persistent JSON message to a queue via the default exchange.

        Args:
            queue: Destination queue name
            message: JSON-serialisable body
            correlation_id: Transport correlation ID (the job ID)
        """
        self.ensure_connected()
        self._producer.publish(
            message,
            exchange="",
            routing_key=queue,
            serializer="json",
            delivery_mode=PERSISTENT_DELIVERY_MODE,
            correlation_id=correlation_id,
        )

    def consume(self, queue: str, handler: DeliveryHandler, prefetch: int) -> None:
        """
        Register a manual-ack consumer with a prefetch limit.

        The broker delivers at most ``prefetch`` unacknowledged messages to
        this consumer at a time.

        Args:
            queue: Queue to consume
            handler: Called once per delivery; must ack or nack it
            prefetch: Maximum unacknowledged deliveries
        """
        self.ensure_connected()

        def _on_message(message: Message) -> None:
            handler(Delivery(message, queue))

        consumer = Consumer(
            self._channel,
            queues=[self.topology.kombu_queue(queue)],
            on_message=_on_message,
            no_ack=False,
        )
        consumer.qos(prefetch_count=prefetch)
        consumer.consume()
        self._consumers.append(consumer)
        logger.info(
            "%s:consume - Waiting for messages",
            __name__,
            extra={"queue": queue, "prefetch": prefetch},
        )

    def run_forever(self, poll_timeout: float = 1.0) -> None:
        """Dispatch deliveries to consumers until stop() is called."""
        self._should_stop = False
        while not self._should_stop:
            try:
                self._connection.drain_events(timeout=poll_timeout)
            except TimeoutError:
                continue

    def stop(self) -> None:
        """Ask run_forever to return after the current delivery."""
        self._should_stop = True

    def close(self) -> None:
        """Cancel consumers and release the connection."""
        for consumer in self._consumers:
            consumer.cancel()
        self._consumers.clear()
        if self._connection is not None:
            self._connection.release()
        self._connection = None
        self._channel = None
        self._producer = None


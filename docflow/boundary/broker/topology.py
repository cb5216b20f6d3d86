"""
Queue topology for the stage pipeline.

Four durable work queues (ingest, ocr, nlp, completed) and one dead-letter
queue per processing stage. The ingest/ocr/nlp queues carry dead-letter
arguments pointing at their DLQ through the default exchange, so a message
rejected without requeue lands in that stage's DLQ instead of being lost.

Declaring the same topology again is a no-op on the broker.

Dependencies: kombu, docflow.configs.broker, docflow.core.job_state
System role: RabbitMQ queue definitions shared by the API and workers
"""

from dataclasses import dataclass

from kombu import Exchange, Queue

from docflow.configs.broker import BrokerSettings
from docflow.core.job_state import JobStage

default_exchange = Exchange("", type="direct", durable=True)


@dataclass(frozen=True)
class QueueTopology:
    """Queue names for every stage plus the dead-letter naming rule."""

    ingest: str = "jobs.ingest"
    ocr: str = "jobs.ocr"
    nlp: str = "jobs.nlp"
    completed: str = "jobs.completed"
    dead_letter_suffix: str = ".dlq"

    @classmethod
    def from_settings(cls, settings: BrokerSettings) -> "QueueTopology":
        """Build the topology from broker settings."""
        return cls(
            ingest=settings.job_queue_ingest,
            ocr=settings.job_queue_ocr,
            nlp=settings.job_queue_nlp,
            completed=settings.job_queue_completed,
            dead_letter_suffix=settings.dead_letter_suffix,
        )

    def queue_for(self, stage: JobStage) -> str:
        """
        Get the queue that feeds a stage.

        Args:
            stage: Pipeline stage (COMPLETED maps to the notification queue)

        Returns:
            str: Queue name
        """
        return {
            JobStage.INGEST: self.ingest,
            JobStage.OCR: self.ocr,
            JobStage.NLP: self.nlp,
            JobStage.COMPLETED: self.completed,
        }[stage]

    def dead_letter_for(self, queue_name: str) -> str:
        """Get the dead-letter queue name for a work queue."""
        return f"{queue_name}{self.dead_letter_suffix}"

    @property
    def work_queues(self) -> tuple[str, str, str]:
        """Queues consumed by stage workers, in pipeline order."""
        return (self.ingest, self.ocr, self.nlp)

    def kombu_queue(self, queue_name: str) -> Queue:
        """
        Build the kombu Queue declaration for one queue.

        Work queues get x-dead-letter-* arguments; completed and DLQs are
        plain durable queues.

        Args:
            queue_name: Any queue of this topology

        Returns:
            Queue: Unbound kombu queue
        """
        queue_arguments = None
        if queue_name in self.work_queues:
            queue_arguments = {
                "x-dead-letter-exchange": "",
                "x-dead-letter-routing-key": self.dead_letter_for(queue_name),
            }
        return Queue(
            queue_name,
            exchange=default_exchange,
            routing_key=queue_name,
            durable=True,
            queue_arguments=queue_arguments,
        )

    def kombu_queues(self) -> list[Queue]:
        """
        All queue declarations, dead-letter targets first.

        Returns:
            list[Queue]: DLQs, completed, then the work queues
        """
        names = [self.dead_letter_for(name) for name in self.work_queues]
        names.append(self.completed)
        names.extend(self.work_queues)
        return [self.kombu_queue(name) for name in names]

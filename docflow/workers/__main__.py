"""
Stage worker entrypoint.

Usage:
    python -m docflow.workers ingest
    python -m docflow.workers ocr
    python -m docflow.workers nlp

Builds the process-owned resources (event loop, database engine, broker
connection), consumes the stage queue until SIGTERM/SIGINT, then releases
them.
"""

import argparse
import asyncio
import logging
import signal
import sys

from docflow.boundary.broker.rabbitmq_broker import RabbitMQBroker
from docflow.boundary.broker.topology import QueueTopology
from docflow.boundary.db.connection import get_async_engine, get_async_session_factory
from docflow.configs import Settings, get_settings
from docflow.core.exceptions import BrokerUnavailableError
from docflow.core.job_tracker import JobTracker
from docflow.observability.logger import configure_logging
from docflow.workers import WORKERS, StageWorker

logger = logging.getLogger(__name__)


def build_worker(
    stage: str,
    settings: Settings,
    tracker: JobTracker,
    loop: asyncio.AbstractEventLoop,
) -> StageWorker:
    """Wire a stage worker to its broker and store."""
    broker = RabbitMQBroker(
        settings.broker.rabbitmq_url,
        QueueTopology.from_settings(settings.broker),
        connect_retries=settings.broker.worker_connect_retries,
        connect_wait=settings.broker.worker_connect_wait,
    )
    worker_cls = WORKERS[stage]
    kwargs = {"loop": loop}
    if stage in ("ocr", "nlp"):
        kwargs["aws_settings"] = settings.aws
    return worker_cls(broker, tracker, settings.pipeline, **kwargs)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="docflow.workers", description="Run one pipeline stage worker")
    parser.add_argument("stage", choices=sorted(WORKERS))
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    loop = asyncio.new_event_loop()
    engine = get_async_engine(settings.database)
    tracker = JobTracker(get_async_session_factory(engine))
    worker = build_worker(args.stage, settings, tracker, loop)
    signal.signal(signal.SIGTERM, lambda *_: worker.stop())

    try:
        worker.start()
    except BrokerUnavailableError as e:
        logger.error("%s:main - %s", __name__, e)
        return 1
    except KeyboardInterrupt:
        logger.info("%s:main - Interrupted", __name__)
    finally:
        loop.run_until_complete(engine.dispose())
        loop.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
docflow: document job pipeline.

Jobs move through ingest → ocr → nlp stage workers connected by RabbitMQ
queues, with job state persisted in PostgreSQL and exposed for polling.
"""

__version__ = "0.1.0"

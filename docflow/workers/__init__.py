"""
Stage workers: one consumer process per pipeline stage.

Exports:
  - StageWorker, StageOutcome: Delivery lifecycle and stage result
  - IngestWorker, OCRWorker, NLPWorker: Concrete stages
  - WORKERS: Stage name to worker class
"""

from docflow.workers.base_worker import StageOutcome, StageWorker
from docflow.workers.ingest_worker import IngestWorker
from docflow.workers.nlp_worker import NLPWorker
from docflow.workers.ocr_worker import OCRWorker

WORKERS: dict[str, type[StageWorker]] = {
    "ingest": IngestWorker,
    "ocr": OCRWorker,
    "nlp": NLPWorker,
}

__all__ = [
    "IngestWorker",
    "NLPWorker",
    "OCRWorker",
    "StageOutcome",
    "StageWorker",
    "WORKERS",
]

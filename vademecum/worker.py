"""
Celery Worker for Vademecum

Offline ingestion of drug-reference PDFs dropped on shared storage.
"""

import asyncio
import logging
import os
from pathlib import Path

from celery import Celery

from vademecum.engine import VademecumEngine
from vademecum.rag.ingestion import DEFAULT_SOURCE

logger = logging.getLogger(__name__)

# Initialize Celery app
celery_app = Celery(
    "vademecum",
    broker=os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/1"),
    backend=os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/2"),
)

# Configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    worker_concurrency=1,
)


async def _ingest(file_path: str, source: str) -> dict:
    engine = VademecumEngine.from_config()
    try:
        pdf_bytes = await asyncio.to_thread(Path(file_path).read_bytes)
        result = await engine.ingest_pdf(pdf_bytes, source)
        return result.model_dump()
    finally:
        await engine.close()


@celery_app.task(name="ingest_vademecum")
def ingest_vademecum(file_path: str, source: str = DEFAULT_SOURCE) -> dict:
    """
    Ingest a drug-reference PDF from disk: extract, segment, embed, upsert.

    Per-section failures are counted in the result; an unreadable file
    fails the task, and Celery records it as FAILURE.
    """
    try:
        tally = asyncio.run(_ingest(file_path, source))
    except Exception as e:
        logger.error("Vademecum ingestion failed for %s: %s", file_path, e)
        raise

    logger.info(
        "Ingested %s: %d processed, %d errors",
        file_path,
        tally["processed"],
        tally["errors"],
    )
    return {"file": os.path.basename(file_path), "status": "completed", **tally}


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    celery_app.start()

"""
Tests for Vademecum Celery Worker
"""

import pytest

from tests.samples import SAMPLE_VADEMECUM_TEXT, FakeEmbedder
from vademecum.config import VademecumConfig
from vademecum.db.store import InMemoryMedicationStore
from vademecum.engine import VademecumEngine
from vademecum.worker import celery_app, ingest_vademecum


@pytest.fixture
def worker_engine(mocker):
    engine = VademecumEngine(
        VademecumConfig(store_backend="memory"),
        InMemoryMedicationStore(),
        FakeEmbedder(),
    )
    mocker.patch.object(VademecumEngine, "from_config", return_value=engine)
    mocker.patch.object(
        engine.pipeline._extractor, "extract", return_value=SAMPLE_VADEMECUM_TEXT
    )
    return engine


class TestIngestTask:
    """Tests for the ingest_vademecum Celery task."""

    @pytest.mark.unit
    def test_task_registered(self):
        assert "ingest_vademecum" in celery_app.tasks

    @pytest.mark.unit
    def test_ingest_success(self, worker_engine, tmp_path):
        pdf_file = tmp_path / "vademecum.pdf"
        pdf_file.write_bytes(b"%PDF-1.4 fake")

        task_result = ingest_vademecum.apply(args=[str(pdf_file), "Vademecum 2026"])

        assert task_result.get() == {
            "file": "vademecum.pdf",
            "status": "completed",
            "processed": 2,
            "errors": 0,
        }

    @pytest.mark.unit
    def test_source_recorded_on_stored_records(self, worker_engine, tmp_path):
        pdf_file = tmp_path / "vademecum.pdf"
        pdf_file.write_bytes(b"%PDF-1.4 fake")

        ingest_vademecum.apply(args=[str(pdf_file), "Vademecum 2026"]).get()

        stored = worker_engine.store._records
        assert {r.source for r in stored.values()} == {"Vademecum 2026"}

    @pytest.mark.unit
    def test_missing_file_fails_task(self, worker_engine, tmp_path):
        task_result = ingest_vademecum.apply(args=[str(tmp_path / "missing.pdf")])

        assert task_result.failed()
        assert isinstance(task_result.result, FileNotFoundError)

"""
Vademecum Test Configuration

Pytest fixtures and configuration for the test suite.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from tests.samples import SAMPLE_VADEMECUM_TEXT, FakeEmbedder
from vademecum.config import VademecumConfig
from vademecum.db.store import InMemoryMedicationStore
from vademecum.engine import VademecumEngine
from vademecum.observability.metrics import reset_metrics
from vademecum.rag.retriever import RetrievalEngine

# ============================================
# Embedding Fixtures
# ============================================


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


# ============================================
# Engine Fixtures
# ============================================


@pytest.fixture
def memory_config() -> VademecumConfig:
    return VademecumConfig(store_backend="memory")


@pytest.fixture
def memory_store() -> InMemoryMedicationStore:
    return InMemoryMedicationStore()


@pytest.fixture
def retriever(memory_store, fake_embedder) -> RetrievalEngine:
    return RetrievalEngine(memory_store, fake_embedder)


@pytest.fixture
def engine(memory_config, memory_store, fake_embedder) -> VademecumEngine:
    return VademecumEngine(memory_config, memory_store, fake_embedder)


@pytest.fixture
async def loaded_engine(engine) -> VademecumEngine:
    """Engine with the Ibuprofeno/Aspirina sample already ingested."""
    await engine.ingest_text(SAMPLE_VADEMECUM_TEXT, "Test Vademecum")
    return engine


# ============================================
# Client Fixtures
# ============================================


@pytest.fixture(autouse=True)
def clean_metrics() -> Generator[None, None, None]:
    """Reset in-process metrics before each test."""
    reset_metrics()
    yield


@pytest.fixture
def client(engine) -> Generator[TestClient, None, None]:
    """Synchronous test client over an in-memory engine."""
    from vademecum.main import create_app

    with TestClient(create_app(engine)) as c:
        yield c


# ============================================
# Sample Data Fixtures
# ============================================


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_VADEMECUM_TEXT


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """A small real PDF with the Ibuprofeno/Aspirina sample text."""
    from fpdf import FPDF

    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=11)
    for line in SAMPLE_VADEMECUM_TEXT.split("\n"):
        pdf.cell(0, 6, line or " ", new_x="LMARGIN", new_y="NEXT")
    return bytes(pdf.output())


# ============================================
# Marker Configuration
# ============================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "requires_db: test requires database connection")
    config.addinivalue_line("markers", "requires_redis: test requires Redis connection")

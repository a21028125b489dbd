"""
Vademecum RAG Module

Medication knowledge ingestion and retrieval.
Provides PDF text extraction, section segmentation, embedding generation,
exact/semantic lookup, interaction checking and context assembly.
"""

from vademecum.rag.cache import EmbeddingCache
from vademecum.rag.context import ContextBuilder
from vademecum.rag.embedding import EmbeddingClient, EmbeddingError
from vademecum.rag.extractor import PDFTextExtractor
from vademecum.rag.ingestion import IngestionPipeline
from vademecum.rag.interactions import InteractionChecker
from vademecum.rag.retriever import RetrievalEngine, RetrievalError
from vademecum.rag.schemas import (
    DrugInteraction,
    IngestionResult,
    InteractionAlert,
    MedicationCandidate,
    MedicationMetadata,
    MedicationRecord,
    SearchResult,
)
from vademecum.rag.segmenter import SectionSegmenter

__all__ = [
    # Ingestion
    "PDFTextExtractor",
    "SectionSegmenter",
    "IngestionPipeline",
    # Embedding
    "EmbeddingClient",
    "EmbeddingError",
    "EmbeddingCache",
    # Retrieval
    "RetrievalEngine",
    "RetrievalError",
    "InteractionChecker",
    "ContextBuilder",
    # Schemas
    "DrugInteraction",
    "MedicationMetadata",
    "MedicationCandidate",
    "MedicationRecord",
    "SearchResult",
    "InteractionAlert",
    "IngestionResult",
]

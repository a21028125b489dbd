"""
Vademecum - Medication Knowledge Ingestion and Retrieval Engine

Turns unstructured drug-reference PDFs into structured medication records
and serves them back to the clinical-notes workflow.

Features:
- Heuristic section segmentation and per-field extraction
- pgvector semantic search with a similarity floor
- Exact / commercial-name lookup with semantic fallback
- Cross-drug interaction alerts
- Grounding context for note generation
"""

__version__ = "0.1.0"
__author__ = "Vademecum Team"

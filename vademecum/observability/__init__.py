"""
Vademecum Observability Module

Monitoring components:
- Prometheus metrics
"""

from vademecum.observability.metrics import (
    get_metrics_text,
    record_ingestion,
    record_query,
)

__all__ = ["get_metrics_text", "record_ingestion", "record_query"]

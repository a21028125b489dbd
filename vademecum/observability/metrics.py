"""
Prometheus Metrics for Vademecum

Tracks:
- ingestion_batches_total / ingestion_processed_total / ingestion_errors_total
- queries_total{operation=...}: Counter of query-path calls per operation
- queries_failed{operation=...}: Counter of failed query-path calls
- query_latency_seconds: Latency percentiles across all query operations
"""

import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)

# Thread-safe metrics storage
_lock = threading.Lock()

_ingestion: dict[str, int] = {
    "batches": 0,
    "processed": 0,
    "errors": 0,
}

_queries: defaultdict[str, int] = defaultdict(int)
_failures: defaultdict[str, int] = defaultdict(int)
_latencies: list[float] = []


def record_ingestion(processed: int, errors: int) -> None:
    """Record the tally of one ingestion batch."""
    with _lock:
        _ingestion["batches"] += 1
        _ingestion["processed"] += processed
        _ingestion["errors"] += errors


def record_query(operation: str, latency_ms: float, success: bool = True) -> None:
    """Record one query-path call (search, get_medication, ...)."""
    with _lock:
        _queries[operation] += 1
        if not success:
            _failures[operation] += 1
        _latencies.append(latency_ms)


def get_metrics_text() -> str:
    """Generate Prometheus-compatible metrics text."""
    with _lock:
        sorted_latencies = sorted(_latencies) if _latencies else [0]
        p50 = _percentile(sorted_latencies, 50)
        p95 = _percentile(sorted_latencies, 95)
        p99 = _percentile(sorted_latencies, 99)

        lines = [
            "# HELP ingestion_batches_total Ingestion batches run",
            "# TYPE ingestion_batches_total counter",
            f'ingestion_batches_total {_ingestion["batches"]}',
            "",
            "# HELP ingestion_processed_total Medication sections stored",
            "# TYPE ingestion_processed_total counter",
            f'ingestion_processed_total {_ingestion["processed"]}',
            "",
            "# HELP ingestion_errors_total Medication sections that failed",
            "# TYPE ingestion_errors_total counter",
            f'ingestion_errors_total {_ingestion["errors"]}',
            "",
            "# HELP queries_total Query-path calls per operation",
            "# TYPE queries_total counter",
        ]
        for operation in sorted(_queries):
            lines.append(f'queries_total{{operation="{operation}"}} {_queries[operation]}')
        lines += [
            "",
            "# HELP queries_failed Failed query-path calls per operation",
            "# TYPE queries_failed counter",
        ]
        for operation in sorted(_failures):
            lines.append(f'queries_failed{{operation="{operation}"}} {_failures[operation]}')
        lines += [
            "",
            "# HELP query_latency_seconds Query latency percentiles",
            "# TYPE query_latency_seconds summary",
            f"query_latency_seconds_p50 {p50 / 1000:.4f}",
            f"query_latency_seconds_p95 {p95 / 1000:.4f}",
            f"query_latency_seconds_p99 {p99 / 1000:.4f}",
        ]

        return "\n".join(lines) + "\n"


def reset_metrics() -> None:
    """Reset all metrics to zero."""
    with _lock:
        for key in _ingestion:
            _ingestion[key] = 0
        _queries.clear()
        _failures.clear()
        _latencies.clear()


def _percentile(sorted_data: list[float], percentile: int) -> float:
    """Compute the given percentile from sorted data."""
    if not sorted_data:
        return 0.0
    idx = int(len(sorted_data) * percentile / 100)
    idx = min(idx, len(sorted_data) - 1)
    return sorted_data[idx]

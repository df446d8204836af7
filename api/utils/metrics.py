"""
Prometheus metrics for file operations.
"""
from prometheus_client import Counter

FILE_OPERATIONS = Counter(
    "media_file_operations_total",
    "File operations handled by the API",
    ["operation", "outcome"],
)


def record_operation(operation: str, outcome: str) -> None:
    """Count one file operation."""
    FILE_OPERATIONS.labels(operation=operation, outcome=outcome).inc()

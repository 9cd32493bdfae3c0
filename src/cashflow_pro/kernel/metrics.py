"""
Prometheus metrics collection for Cashflow Pro.

Distribution failures never raise, so this counter is how they surface.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Histogram, start_http_server

# ============================================================================
# Calculation Metrics
# ============================================================================

distribution_failures_total = Counter(
    "cashflow_distribution_failures_total",
    "Total number of distributions that fell back to an empty mapping",
    ["method"],
)

projections_recomputed_total = Counter(
    "cashflow_projections_recomputed_total",
    "Total number of per-category projection recomputes",
)

# ============================================================================
# Session Operation Metrics
# ============================================================================

operation_duration_seconds = Histogram(
    "cashflow_operation_duration_seconds",
    "Duration of session operations in seconds",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

operations_total = Counter(
    "cashflow_operations_total",
    "Total number of session operations",
    ["operation", "status"],  # status: success, failure
)

# ============================================================================
# Persistence Metrics
# ============================================================================

document_saves_total = Counter(
    "cashflow_document_saves_total",
    "Total number of project document saves",
    ["status"],
)

# ============================================================================
# Helper Functions
# ============================================================================

P = ParamSpec("P")
R = TypeVar("R")


def track_operation_duration(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator to track session operation duration.

    Args:
        operation: Name of the operation being processed

    Returns:
        Decorated function that tracks duration
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            status = "success"
            try:
                return func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                duration = time.perf_counter() - start
                operation_duration_seconds.labels(operation=operation).observe(duration)
                operations_total.labels(operation=operation, status=status).inc()

        return wrapper

    return decorator


def start_metrics_server(port: int = 9090) -> None:
    """Start Prometheus metrics HTTP server."""
    start_http_server(port)

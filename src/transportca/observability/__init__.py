"""
Observability components for transportca.

Provides Prometheus metrics for CA reconciliation.
"""

from .metrics import MetricsCollector

__all__ = [
    "MetricsCollector",
]

"""
Prometheus Metrics Integration.

Counters describing transport CA reconciliation outcomes.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, generate_latest


class MetricsCollector:
    """
    Prometheus metrics collector for transport CA reconciliation.

    Exposes metrics:
    - transportca_reconcile_total{source="custom|shared|self_signed"}
    - transportca_reconcile_errors_total{kind="..."}
    - transportca_ca_generated_total
    - transportca_gc_failures_total

    Each collector owns its registry so several reconcilers (or tests) can
    live in one process.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics collector."""
        self.registry = registry or CollectorRegistry()

        self.reconcile_total = Counter(
            "transportca_reconcile_total",
            "Successful transport CA reconciliations by authoritative source",
            ["source"],
            registry=self.registry,
        )
        self.reconcile_errors_total = Counter(
            "transportca_reconcile_errors_total",
            "Failed transport CA reconciliations by error kind",
            ["kind"],
            registry=self.registry,
        )
        self.ca_generated_total = Counter(
            "transportca_ca_generated_total",
            "Self-signed transport CAs generated or rotated",
            registry=self.registry,
        )
        self.gc_failures_total = Counter(
            "transportca_gc_failures_total",
            "Failed best-effort deletions of stale self-signed CA secrets",
            registry=self.registry,
        )

    def record_reconcile(self, source: str) -> None:
        self.reconcile_total.labels(source=source).inc()

    def record_error(self, error: Exception) -> None:
        self.reconcile_errors_total.labels(kind=type(error).__name__).inc()

    def record_ca_generated(self) -> None:
        self.ca_generated_total.inc()

    def record_gc_failure(self) -> None:
        self.gc_failures_total.inc()

    def sample(self, name: str, labels: Optional[dict[str, str]] = None) -> float:
        """Current value of a sample, 0.0 if it was never recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value or 0.0

    def export(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)

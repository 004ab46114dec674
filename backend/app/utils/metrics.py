"""Prometheus metrics for search and indexing."""

from prometheus_client import Counter, Histogram

search_requests_total = Counter(
    "search_requests_total",
    "Total search requests",
    ["kind", "outcome"],
)

search_latency_ms = Histogram(
    "search_latency_ms",
    "Search latency in milliseconds",
    ["kind"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

index_operations_total = Counter(
    "index_operations_total",
    "Total indexing operations",
    ["operation", "outcome"],
)


class PrometheusSearchMetrics:
    """Prometheus-based search metrics implementation."""

    def record_search(self, kind: str, outcome: str, latency_ms: float) -> None:
        """Record a search request and its latency."""
        search_requests_total.labels(kind=kind, outcome=outcome).inc()
        search_latency_ms.labels(kind=kind).observe(latency_ms)

    def inc_index(self, operation: str, outcome: str) -> None:
        """Increment the indexing operation counter."""
        index_operations_total.labels(operation=operation, outcome=outcome).inc()

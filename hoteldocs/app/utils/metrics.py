"""Prometheus metrics for search and embedding."""

from prometheus_client import Counter, Histogram

search_latency_ms = Histogram(
    "search_latency_ms",
    "Document search latency in milliseconds",
    ["search_type"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 60000],
)

search_strategy_errors_total = Counter(
    "search_strategy_errors_total",
    "Similarity-search strategy failures",
    ["strategy"],
)

search_fallbacks_total = Counter(
    "search_fallbacks_total",
    "Searches that fell through to the next strategy",
    ["from_strategy"],
)

embedding_latency_ms = Histogram(
    "embedding_latency_ms",
    "Embedding inference latency in milliseconds",
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000],
)


class PrometheusSearchMetrics:
    """Prometheus-based search metrics implementation."""

    def record_latency(self, search_type: str, latency_ms: float) -> None:
        """Record end-to-end search latency."""
        search_latency_ms.labels(search_type=search_type).observe(latency_ms)

    def inc_error(self, strategy: str) -> None:
        """Increment strategy error counter."""
        search_strategy_errors_total.labels(strategy=strategy).inc()

    def inc_fallback(self, from_strategy: str) -> None:
        """Increment fallback counter."""
        search_fallbacks_total.labels(from_strategy=from_strategy).inc()

"""Prometheus metrics for turns, completions, weather lookups and sessions."""

from prometheus_client import Counter, Gauge, Histogram

# Turn outcomes: direct, tools, needs_location, greeting, upstream_error, tool_error, config_error
chat_turns_total = Counter(
    "chat_turns_total",
    "Total chat turns by final outcome",
    ["outcome"],
)

completion_requests_total = Counter(
    "completion_requests_total",
    "Total completion provider requests",
    ["stage", "outcome"],
)

weather_lookup_latency_ms = Histogram(
    "weather_lookup_latency_ms",
    "Weather lookup latency in milliseconds",
    ["date_type", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000, 8000],
)

sessions_active = Gauge(
    "sessions_active",
    "Sessions currently held by the registry",
)

sessions_evicted_total = Counter(
    "sessions_evicted_total",
    "Total sessions evicted",
    ["reason"],
)


class PrometheusTurnMetrics:
    """Prometheus-based turn metrics implementation."""

    def record_turn(self, outcome: str) -> None:
        """Count a finished turn."""
        chat_turns_total.labels(outcome=outcome).inc()

    def record_completion(self, stage: str, outcome: str) -> None:
        """Count a completion request."""
        completion_requests_total.labels(stage=stage, outcome=outcome).inc()

    def record_lookup(self, date_type: str, outcome: str, latency_ms: float) -> None:
        """Record weather lookup latency."""
        weather_lookup_latency_ms.labels(date_type=date_type, outcome=outcome).observe(latency_ms)

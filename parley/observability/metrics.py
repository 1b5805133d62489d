"""Prometheus metrics for Parley.

Request tracking, completion latency, token usage and session store
occupancy.
"""

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "parley_request_count_total",
    "Total number of HTTP requests processed",
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "parley_request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=["endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

COMPLETION_LATENCY = Histogram(
    "parley_completion_latency_seconds",
    "Latency of calls to the completion provider",
    labelnames=["provider"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

COMPLETION_FAILURES = Counter(
    "parley_completion_failures_total",
    "Completion calls that ended without an assistant turn",
    labelnames=["provider", "reason"],
)

LLM_TOKENS = Counter(
    "parley_llm_tokens_total",
    "Total LLM tokens used",
    labelnames=["provider", "model"],
)

TURNS_APPENDED = Counter(
    "parley_turns_appended_total",
    "Turns recorded in session history",
    labelnames=["role"],
)

TURNS_EVICTED = Counter(
    "parley_turns_evicted_total",
    "Turns dropped from the front of a session's history on overflow",
)

SESSIONS_EVICTED = Counter(
    "parley_sessions_evicted_total",
    "Sessions removed by the idle sweeper",
)

ACTIVE_SESSIONS = Gauge(
    "parley_active_sessions",
    "Number of sessions held in memory",
)

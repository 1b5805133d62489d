"""Observability: structured logging, tracing, metrics.

structlog for logging, OpenTelemetry for tracing, Prometheus for metrics.
"""

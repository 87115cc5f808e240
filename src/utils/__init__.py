"""
Shared utilities for table merging

Provides:
- logging: structured logging setup and formatters
- metrics: Prometheus metrics for merge runs
- tracing: OpenTelemetry spans
- sql_safety: identifier validation
"""

__all__ = ["logging", "metrics", "tracing", "sql_safety"]

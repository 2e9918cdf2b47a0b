"""
Utility modules for tablesync

Provides:
- logging: structured/console logging setup
- tracing: OpenTelemetry spans for runs and tasks
- retry: exponential backoff for transient database errors
- sql_safety: PostgreSQL identifier quoting
"""

__version__ = "1.0.0"
__all__ = ["logging", "tracing", "retry", "sql_safety"]

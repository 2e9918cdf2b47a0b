"""
Prometheus metrics for sync runs.

Registration tolerates re-import (e.g. in tests) by reusing the collector
already in the registry.
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram


def _existing(name: str):
    return REGISTRY._names_to_collectors.get(name)


try:
    TASKS_PROCESSED = Counter(
        "tablesync_tasks_total",
        "Tables processed by sync runs",
        ["status"],  # success, failure
        registry=REGISTRY
    )
except ValueError:
    TASKS_PROCESSED = _existing("tablesync_tasks_total")

try:
    TASK_TIME = Histogram(
        "tablesync_task_seconds",
        "Time to sync a single table",
        buckets=[0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600, 1800],
        registry=REGISTRY
    )
except ValueError:
    TASK_TIME = _existing("tablesync_task_seconds")

try:
    ACTIVE_WORKERS = Gauge(
        "tablesync_active_workers",
        "Tasks currently dispatched and not yet settled",
        registry=REGISTRY
    )
except ValueError:
    ACTIVE_WORKERS = _existing("tablesync_active_workers")

"""
tablesync: copy the contents of a set of PostgreSQL tables from a source
database to a destination database.

Components:
- metadata: catalog probes for columns, triggers and constraints
- deferral: integrity relaxation around the run (replica role, trigger
  disabling, deferred constraints)
- scheduler: sequential, thread-pool or process-pool task dispatch
- progress: spinner or line-based progress reporting
- aggregator: notices and failure collection
- orchestrator: TableSync, which ties the above together

Usage:
    from tablesync.orchestrator import TableSync
    TableSync(source=src, destination=dst, tasks=tasks, opts=opts, resolver=resolver).perform()
"""

__version__ = "1.0.0"
__all__ = ["metadata", "deferral", "scheduler", "progress", "aggregator", "orchestrator"]

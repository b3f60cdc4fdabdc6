"""
StayScout: browser-driven extraction of hotel room prices and nearby events.

Subpackages:
- core: config, logging, failure taxonomy, job models
- crawler: browser sessions and page readiness
- extraction: pure HTML strategies and the ordered pipeline
- scheduling: date partitioning, bounded parallelism, recovery, aggregation
- geo: distance filter and partial-event enrichment
- db: record models and the Supabase sink
- jobs: price/events flows and the job runner
"""

__version__ = "0.1.0"

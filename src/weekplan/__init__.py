"""
weekplan: weekly task planner and habit tracker.

Subpackages:
- core: models, date utilities, stats aggregation, schedule editing, PlannerService
- storage: SQLite-backed Store adapter
- notify: asyncio daily reminder (Notifier adapter)
- cli / connectors: composition root and console REPL
"""

__version__ = "0.1.0"

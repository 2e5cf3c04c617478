"""Core Layer — caches, reconciliation and projections. No IO, no network.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - Every cache mutation is synchronous; suspension points live in services/
"""

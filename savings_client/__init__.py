"""Savings Client Package — cache and synchronization layer for the savings-account API.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

__version__ = "1.0.0"

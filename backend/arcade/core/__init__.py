"""Core Layer — session state, arbitration, scoring and parsing. No IO, no async.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - Mutations of a Session happen synchronously (no suspension point inside)
"""

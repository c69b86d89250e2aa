"""Core Layer - pure domain logic: pricing, retry state, CSV rows, errors, protocols.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - No IO, no sleeping, no network
"""

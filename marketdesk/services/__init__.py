"""Services Layer - orchestration between routes and IO adapters.

Invariants:
    - Services receive their collaborators (session, stores, gateways) as arguments
    - No service reads settings or module-level singletons
"""

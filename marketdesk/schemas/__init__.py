"""Pydantic Schemas - request/response validation for API endpoints.

Invariants:
    - Schemas validate at the system boundary (user input, API responses)
    - Money fields are Decimal and serialize as strings with 2 decimals
"""

"""MarketDesk - reseller backend: eBay pricing search, inventory records, sheet sync.

Invariants:
    - Package root contains no executable code (no import side effects)
"""

"""Listing Pricing - pure aggregation of eBay item summaries into a SearchSummary.

Invariants:
    - Only item["price"]["value"] is read; all other item fields pass through untouched
    - Unparseable, missing, NaN or infinite prices are skipped, never raised
    - Prices too large to represent at cent precision are skipped the same way
    - No parseable price -> average/highest/lowest are all Decimal("0.00")
    - average is rounded half-up to 2 places and lies within [lowest, highest]
    - total_count is the upstream total, not the number of parsed prices

Design Decisions:
    - Decimal, not float: money is rendered to exactly 2 places
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class SearchSummary:
    """Aggregated view of one search response. Derived, never persisted."""
    total_count: int
    average_price: Decimal
    highest_price: Decimal
    lowest_price: Decimal
    items: list = field(default_factory=list)


def parse_price(item: object) -> Decimal | None:
    """Return the item's price as Decimal, or None if absent or not numeric."""
    if not isinstance(item, dict):
        return None
    price = item.get("price")
    if not isinstance(price, dict):
        return None
    raw = price.get("value")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    try:
        value.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    return value


def collect_prices(items: Iterable[object]) -> list[Decimal]:
    return [p for p in (parse_price(i) for i in items) if p is not None]


def summarize_listings(items: Sequence[object], total: int) -> SearchSummary:
    """Fold raw item summaries into count/average/min/max. Pure, no IO."""
    prices = collect_prices(items)
    if not prices:
        return SearchSummary(
            total_count=total,
            average_price=ZERO,
            highest_price=ZERO,
            lowest_price=ZERO,
            items=list(items),
        )
    average = (sum(prices, Decimal(0)) / len(prices)).quantize(
        CENTS, rounding=ROUND_HALF_UP,
    )
    return SearchSummary(
        total_count=total,
        average_price=average,
        highest_price=max(prices).quantize(CENTS, rounding=ROUND_HALF_UP),
        lowest_price=min(prices).quantize(CENTS, rounding=ROUND_HALF_UP),
        items=list(items),
    )

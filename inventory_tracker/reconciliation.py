"""
Month-end reconciliation: compares the system stock of every product with a
physical count and prices the difference as sales.

Everything here is a pure computation over the catalog snapshot it is given.
Applying a result (archiving the report, overwriting stock) is done by
`InventoryManager.finalize_month`.
"""

import logging
import re
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence, Union

from . import settings
from .errors import ValidationError
from .schemas import MonthEndReport, Product, ReconciliationResult, SaleItem

logger = logging.getLogger(__name__)

_WHOLE_NUMBER = re.compile(r"^[+-]?\d+$")

EnteredCount = Union[str, int, None]


def _check_policy(policy: Optional[str]) -> str:
    policy = (policy or settings.INVALID_COUNT_POLICY).lower()
    if policy not in settings.COUNT_POLICIES:
        raise ValueError(
            f"Unknown count policy '{policy}'. Expected one of {settings.COUNT_POLICIES}."
        )
    return policy


def resolve_actual(
    system_stock: int,
    entered: EnteredCount,
    policy: Optional[str] = None,
    product_id: str = "?",
) -> int:
    """
    Turns what the user typed for a product into the counted stock level.

    - Nothing entered (None or blank) means "unchanged": the system stock.
    - A whole number is used as-is, clamped so it is never below 0.
    - Anything else is rejected or read as 0, depending on `policy`.
    """
    policy = _check_policy(policy)

    if entered is None:
        return system_stock

    if isinstance(entered, bool):
        parsed = None
    elif isinstance(entered, int):
        parsed = entered
    else:
        text = str(entered).strip()
        if text == "":
            return system_stock
        parsed = None
        if _WHOLE_NUMBER.match(text):
            try:
                parsed = int(text)
            except ValueError:
                # Past the interpreter's digit limit for str -> int.
                pass

    if parsed is None:
        if policy == "reject":
            raise ValidationError(
                f"Actual count for product '{product_id}' must be a whole number, got {entered!r}"
            )
        logger.warning(
            f"⚠️ Count {entered!r} for product '{product_id}' is not a number; using 0."
        )
        parsed = 0

    return max(0, parsed)


def reconcile_product(
    product: Product, entered: EnteredCount, policy: Optional[str] = None
) -> SaleItem:
    safe_actual = resolve_actual(
        product.current_stock, entered, policy=policy, product_id=product.id
    )
    sold = product.current_stock - safe_actual
    return SaleItem(
        product_id=product.id,
        product_name=product.name,
        system_stock=product.current_stock,
        actual_stock=safe_actual,
        sold_quantity=sold,
        revenue=sold * product.retail_price,
        profit=sold * (product.retail_price - product.wholesale_price),
    )


def reconcile(
    products: Sequence[Product],
    counts: Optional[Mapping[str, EnteredCount]] = None,
    policy: Optional[str] = None,
) -> ReconciliationResult:
    """
    Prices a stocktake. `counts` maps product id to the entered count and may
    leave out any product. One item per product, in catalog order; no rounding.
    """
    counts = counts or {}
    policy = _check_policy(policy)

    unknown = set(counts) - {p.id for p in products}
    if unknown:
        logger.debug(f"Ignoring counts for products not in the catalog: {sorted(unknown)}")

    items = tuple(reconcile_product(p, counts.get(p.id), policy) for p in products)
    return ReconciliationResult(
        total_revenue=sum(item.revenue for item in items),
        total_profit=sum(item.profit for item in items),
        items=items,
    )


def build_report(
    items: Iterable[SaleItem], report_id: str, timestamp: datetime
) -> MonthEndReport:
    """
    Wraps sale items into a report whose totals are their exact sums.
    Each product may appear at most once.
    """
    details = tuple(items)
    seen = set()
    for item in details:
        if item.product_id in seen:
            raise ValidationError(
                f"Product '{item.product_id}' appears more than once in the sale items"
            )
        seen.add(item.product_id)

    return MonthEndReport(
        id=report_id,
        timestamp=timestamp,
        total_sales=sum(item.revenue for item in details),
        total_profit=sum(item.profit for item in details),
        details=details,
    )

"""
Line item checks and quote totals.

Drafted figures are verified, never repaired: a negative value or a total
that disagrees with quantity × unit cost raises InvalidLineItem.
"""

import logging
import math
from typing import Iterable, List, Optional

from .config import settings
from .errors import InvalidLineItem
from .models import ItemKind, LineItem

logger = logging.getLogger(__name__)


def validate_line_item(item: LineItem, tolerance: Optional[float] = None) -> LineItem:
    """Raise InvalidLineItem if the item's figures cannot be trusted."""
    if tolerance is None:
        tolerance = settings.LINE_TOTAL_TOLERANCE

    for field in ("quantity", "unit_cost", "total"):
        value = getattr(item, field)
        if not math.isfinite(value):
            logger.warning("Rejected line item %r: non-finite %s", item.label, field)
            raise InvalidLineItem(item.label, field, f"is not a finite number ({value})")
        if value < 0:
            logger.warning("Rejected line item %r: negative %s", item.label, field)
            raise InvalidLineItem(item.label, field, f"is negative ({value})")

    expected = item.quantity * item.unit_cost
    if abs(item.total - expected) > tolerance:
        logger.warning("Rejected line item %r: total %.2f != %.2f",
                       item.label, item.total, expected)
        raise InvalidLineItem(
            item.label, "total",
            f"is {item.total:.2f} but quantity × unit_cost is {expected:.2f}",
        )
    return item


def validate_line_items(items: Iterable[LineItem],
                        tolerance: Optional[float] = None) -> List[LineItem]:
    return [validate_line_item(item, tolerance) for item in items]


def labor_subtotal(items: Iterable[LineItem]) -> float:
    """Sum of labor line totals."""
    return round(sum(i.total for i in items if i.kind == ItemKind.LABOR), 2)


def material_subtotal(items: Iterable[LineItem]) -> float:
    """Sum of material line totals."""
    return round(sum(i.total for i in items if i.kind == ItemKind.MATERIAL), 2)


def normalize_label(label: str) -> str:
    """Label key used to pair items across quote versions."""
    return "".join(ch for ch in label.strip().lower() if ch not in ".,:;!?")

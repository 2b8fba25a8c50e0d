"""
Line item validation tests.

Tests:
1-4. Malformed figures raise InvalidLineItem
5-6. Tolerance and subtotals
"""

import pytest

from quotecheck.errors import InvalidLineItem
from quotecheck.line_items import (
    labor_subtotal, material_subtotal, normalize_label, validate_line_item, validate_line_items,
)
from quotecheck.models import ItemKind, LineItem


# ============================================================
# 1-4. Malformed figures
# ============================================================

@pytest.mark.parametrize("field", ["quantity", "unit_cost", "total"])
def test_negative_figure_rejected(field):
    values = {"quantity": 2.0, "unit_cost": 100.0, "total": 200.0}
    values[field] = -values[field]
    item = LineItem(label="Kakel vägg", kind=ItemKind.MATERIAL, **values)
    with pytest.raises(InvalidLineItem) as exc:
        validate_line_item(item)
    assert exc.value.field == field
    assert exc.value.label == "Kakel vägg"


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_non_finite_figure_rejected(value):
    """NaN slips past every comparison, so it is rejected up front."""
    item = LineItem(label="Målning", kind=ItemKind.LABOR,
                    quantity=value, unit_cost=500, total=value)
    with pytest.raises(InvalidLineItem) as exc:
        validate_line_item(item)
    assert exc.value.field == "quantity"


def test_total_mismatch_rejected():
    item = LineItem(label="Rivning", kind=ItemKind.LABOR, quantity=10, unit_cost=650, total=5000)
    with pytest.raises(InvalidLineItem) as exc:
        validate_line_item(item)
    assert exc.value.to_dict() == {
        "label": "Rivning",
        "field": "total",
        "reason": exc.value.reason,
    }
    assert "6500.00" in str(exc.value)


def test_invalid_item_is_a_value_error():
    item = LineItem(label="Rivning", kind=ItemKind.LABOR, quantity=-1, unit_cost=650, total=0)
    with pytest.raises(ValueError):
        validate_line_items([item])


# ============================================================
# 5-6. Tolerance and subtotals
# ============================================================

def test_rounding_within_tolerance_accepted(bathroom_items):
    item = LineItem(label="Fogmassa", kind=ItemKind.MATERIAL,
                    quantity=3, unit_cost=33.33, total=100.0)
    assert validate_line_item(item) is item
    assert validate_line_items(bathroom_items) == bathroom_items


def test_subtotals_split_by_kind(bathroom_items):
    assert labor_subtotal(bathroom_items) == 31100
    assert material_subtotal(bathroom_items) == 8900
    assert normalize_label("  Rivning, kakel. ") == "rivning kakel"

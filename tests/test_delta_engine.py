"""
Delta engine tests.

Tests:
1-5.   Percent change and confirmation threshold
6-7.   Explaining a swing
8-9.   Proportion warnings across versions
10-12. Line item diff
13-15. Change-request direction
16.    Malformed line items
"""

import pytest

from quotecheck.delta_engine import DeltaEngine, compare_quotes
from quotecheck.errors import InvalidLineItem
from quotecheck.models import ItemKind, LineItem, Quote, QuoteWarning, Severity
from quotecheck.pipeline import QuotePipeline

PAINTING_JOB = "Måla om vardagsrummet, 40 kvm väggyta"


def _item(label, total, kind=ItemKind.LABOR):
    return LineItem(label=label, kind=kind, quantity=1, unit_cost=total, total=total)


def _share_warning(ref, message):
    return QuoteWarning(code="ITEM_DOMINATES", severity=Severity.CAUTION,
                        message=message, ref=ref)


def _repriced_painting(painting_items):
    """Same job with twice the top-coat hours."""
    items = []
    for item in painting_items:
        if item.label == "Målning två strykningar":
            item = LineItem(label=item.label, kind=item.kind, quantity=12,
                            unit="tim", unit_cost=500, total=6000)
        items.append(item)
    return items


# ============================================================
# 1-5. Percent change and threshold
# ============================================================

def test_same_quote_needs_no_confirmation(painting_items):
    quote = QuotePipeline().build_quote(PAINTING_JOB, painting_items)
    report = compare_quotes(quote, quote)
    assert report.percent_change == 0
    assert report.absolute_change == 0
    assert not report.requires_confirmation
    assert report.warnings == []
    assert report.added_items == [] and report.removed_items == [] and report.modified_items == []


def test_thirty_percent_rise_needs_confirmation():
    report = compare_quotes(Quote(grand_total=20000), Quote(grand_total=26000))
    assert report.absolute_change == 6000
    assert report.percent_change == pytest.approx(30.0)
    assert report.requires_confirmation
    assert report.warnings[0].code == "PRICE_SWING"
    assert "20 000 kr" in report.warnings[0].message
    assert "26 000 kr" in report.warnings[0].message


def test_threshold_is_inclusive_and_overridable():
    previous, current = Quote(grand_total=10000), Quote(grand_total=11000)
    assert not compare_quotes(previous, current).requires_confirmation
    assert compare_quotes(previous, current, threshold=10).requires_confirmation
    assert DeltaEngine(threshold_pct=5).compare(previous, current).requires_confirmation

    drop = compare_quotes(previous, Quote(grand_total=7500))
    assert drop.requires_confirmation
    assert "fell" in drop.warnings[0].message


def test_just_below_threshold_needs_no_confirmation():
    """19.996% rounds to 20.00 for display but is still below 20."""
    report = compare_quotes(Quote(grand_total=100000), Quote(grand_total=119996), threshold=20)
    assert report.percent_change == 20.0
    assert not report.requires_confirmation
    assert report.warnings == []


def test_zero_previous_total():
    assert compare_quotes(Quote(), Quote(grand_total=500)).percent_change == 100.0
    assert compare_quotes(Quote(), Quote()).percent_change == 0.0


# ============================================================
# 6-7. Explaining a swing
# ============================================================

def test_swing_explained_by_labor_and_new_warning(painting_items):
    pipeline = QuotePipeline()
    previous = pipeline.build_quote(PAINTING_JOB, painting_items)
    current = pipeline.build_quote(PAINTING_JOB, _repriced_painting(painting_items))

    assert previous.grand_total == 5330
    assert current.grand_total == 6830

    report = compare_quotes(previous, current)
    assert report.requires_confirmation
    assert report.percent_change == pytest.approx(28.14, abs=0.01)
    assert report.labor_change == 3000
    assert report.material_change == 0
    assert report.deduction_change == 1500
    assert [w.code for w in report.warnings] == [
        "PRICE_SWING", "LABOR_CHANGED", "DEDUCTION_CHANGED",
        "ITEM_CHANGED", "NEW_PROPORTION_WARNING",
    ]
    assert report.warnings[-1].ref == "share:målning två strykningar"


def test_compare_leaves_quotes_untouched(painting_items):
    pipeline = QuotePipeline()
    previous = pipeline.build_quote(PAINTING_JOB, painting_items)
    current = pipeline.build_quote(PAINTING_JOB, _repriced_painting(painting_items))
    before = (previous.model_dump(), current.model_dump())
    compare_quotes(previous, current)
    assert (previous.model_dump(), current.model_dump()) == before


# ============================================================
# 8-9. Proportion warnings across versions
# ============================================================

def test_repeated_warning_not_reported_as_new():
    """Same code and subject, different numbers in the message."""
    previous = Quote(grand_total=10000, warnings=[
        _share_warning("share:rivning", "Rivning is 55% of the labor cost"),
    ])
    current = Quote(grand_total=13000, warnings=[
        _share_warning("share:rivning", "Rivning is 61% of the labor cost"),
    ])
    report = compare_quotes(previous, current)
    assert report.requires_confirmation
    assert "NEW_PROPORTION_WARNING" not in [w.code for w in report.warnings]


def test_only_new_warnings_reported():
    previous = Quote(grand_total=10000, warnings=[
        _share_warning("share:rivning", "Rivning is 55% of the labor cost"),
    ])
    current = Quote(grand_total=13000, warnings=[
        _share_warning("share:rivning", "Rivning is 55% of the labor cost"),
        _share_warning("share:kakling", "Kakling is 70% of the labor cost"),
    ])
    new = [w for w in compare_quotes(previous, current).warnings
           if w.code == "NEW_PROPORTION_WARNING"]
    assert [w.ref for w in new] == ["share:kakling"]


# ============================================================
# 10-12. Line item diff
# ============================================================

def test_items_paired_by_normalized_label():
    previous = Quote(line_items=[_item("Rivning.", 1000), _item("Bortforsling", 2000)],
                     grand_total=3000)
    current = Quote(line_items=[_item("rivning", 1500), _item("Städning", 800)],
                    grand_total=2300)
    report = compare_quotes(previous, current)
    assert [i.label for i in report.added_items] == ["Städning"]
    assert [i.label for i in report.removed_items] == ["Bortforsling"]
    assert len(report.modified_items) == 1
    change = report.modified_items[0]
    assert (change.previous_total, change.new_total, change.difference) == (1000, 1500, 500)


def test_item_warnings_capped_largest_first():
    previous = Quote(line_items=[_item("Rivning", 1000), _item("Bortforsling", 2000)],
                     grand_total=3000)
    current = Quote(line_items=[_item("Rivning", 1500), _item("Städning", 800)],
                    grand_total=2300)
    report = DeltaEngine(max_item_warnings=1).compare(previous, current)
    item_codes = [w.code for w in report.warnings if w.code.startswith("ITEM_")]
    assert item_codes == ["ITEM_REMOVED"]


def test_repeated_labels_paired_by_occurrence():
    """A second line with the same label is diffed against the second line."""
    previous = Quote(line_items=[_item("Målning", 3000), _item("Målning", 2000)],
                     grand_total=5000)
    current = Quote(line_items=[_item("Målning", 3000), _item("Målning", 4000),
                                _item("Målning", 1500)],
                    grand_total=8500)
    report = compare_quotes(previous, current)
    assert [(c.previous_total, c.new_total) for c in report.modified_items] == [(2000, 4000)]
    assert [i.total for i in report.added_items] == [1500]
    assert report.removed_items == []
    item_codes = [w.code for w in report.warnings if w.code.startswith("ITEM_")]
    assert item_codes == ["ITEM_CHANGED", "ITEM_ADDED"]


# ============================================================
# 13-15. Change-request direction
# ============================================================

def test_added_work_with_falling_price_is_blocking():
    report = compare_quotes(Quote(grand_total=10000), Quote(grand_total=9000),
                            user_message="Lägg till fönsterputs också")
    assert report.requires_confirmation
    assert [(w.code, w.severity) for w in report.warnings] == [
        ("PRICE_DIRECTION", Severity.BLOCKING),
    ]


def test_removed_work_with_rising_price_is_caution():
    report = compare_quotes(Quote(grand_total=10000), Quote(grand_total=10500),
                            user_message="Ta bort stubbfräsningen")
    assert not report.requires_confirmation
    assert [(w.code, w.severity) for w in report.warnings] == [
        ("PRICE_DIRECTION", Severity.CAUTION),
    ]


def test_price_moving_as_asked_is_quiet():
    report = compare_quotes(Quote(grand_total=10000), Quote(grand_total=10500),
                            user_message="Lägg till en extra strykning")
    assert report.warnings == []


# ============================================================
# 16. Malformed line items
# ============================================================

def test_malformed_item_in_either_version_raises():
    bad = LineItem(label="Grundfärg", kind=ItemKind.MATERIAL,
                   quantity=-4, unit_cost=120, total=999)
    good = Quote(line_items=[_item("Målning", 3000)], grand_total=3000)
    broken = Quote(line_items=[bad], grand_total=999)
    with pytest.raises(InvalidLineItem) as exc:
        compare_quotes(good, broken)
    assert exc.value.label == "Grundfärg"
    with pytest.raises(InvalidLineItem):
        compare_quotes(broken, good)

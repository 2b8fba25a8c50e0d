"""
Delta Engine — explains price movement between two versions of a quote.

Compares a regenerated quote with the previously accepted one. Flags
requires_confirmation when the grand total moves by threshold % or more, and
then says why: labor vs material movement, deduction changes, which line
items came and went, and which proportion warnings are new in this version.

Advisory only. Both quotes are left untouched; the caller decides whether to
block, regenerate or let the user override.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .config import settings
from .line_items import normalize_label, validate_line_items
from .models import (
    DeltaReport, ItemChange, LineItem, Quote, QuoteWarning, Severity,
)

logger = logging.getLogger(__name__)

# Warning codes produced by the proportion checker
PROPORTION_CODES = {"PROPORTION_OVER", "PROPORTION_UNDER", "COMPANION_MISSING", "ITEM_DOMINATES"}

# Change-request wording (Swedish chat)
ADD_KEYWORDS = ["lägg till", "även", "också", "plus", "inkludera"]
REMOVE_KEYWORDS = ["ta bort", "utan", "skippa", "exkludera", "ta inte med"]


def _pct(change: float, base: float) -> float:
    if base == 0:
        return 100.0 if change != 0 else 0.0
    return change / base * 100.0


def _kr(amount: float) -> str:
    return f"{amount:,.0f} kr".replace(",", " ")


def _signed_kr(amount: float) -> str:
    return ("+" if amount >= 0 else "-") + _kr(abs(amount))


def _keyed(items: List[LineItem]) -> Dict[Tuple[str, int], LineItem]:
    keyed = {}
    seen: Dict[str, int] = {}
    for item in items:
        label = normalize_label(item.label)
        index = seen.get(label, 0)
        seen[label] = index + 1
        keyed[(label, index)] = item
    return keyed


class DeltaEngine:
    """
    Compares two quote snapshots and produces a DeltaReport.
    """

    def __init__(self, threshold_pct: Optional[float] = None,
                 max_item_warnings: Optional[int] = None):
        self.threshold_pct = (
            threshold_pct if threshold_pct is not None else settings.DELTA_THRESHOLD_PCT
        )
        self.max_item_warnings = (
            max_item_warnings if max_item_warnings is not None
            else settings.DELTA_MAX_ITEM_WARNINGS
        )

    def compare(self, previous: Quote, current: Quote,
                threshold: Optional[float] = None,
                user_message: Optional[str] = None) -> DeltaReport:
        threshold = self.threshold_pct if threshold is None else threshold
        validate_line_items(previous.line_items)
        validate_line_items(current.line_items)

        change = current.grand_total - previous.grand_total
        raw_percent = _pct(change, previous.grand_total)
        absolute_change = round(change, 2)
        percent_change = round(raw_percent, 2)
        labor_change = round(current.labor_total - previous.labor_total, 2)
        material_change = round(current.material_total - previous.material_total, 2)
        deduction_change = round(current.deduction.amount - previous.deduction.amount, 2)

        added, removed, modified = self._diff_items(previous.line_items, current.line_items)

        warnings = []
        requires_confirmation = abs(raw_percent) >= threshold
        if requires_confirmation:
            warnings.extend(self._explain_swing(
                previous, current, absolute_change, percent_change,
                labor_change, material_change, deduction_change,
                added, removed, modified,
            ))

        if user_message:
            warnings.extend(self._check_intent(user_message, previous, current, absolute_change))

        if any(w.severity == Severity.BLOCKING for w in warnings):
            requires_confirmation = True

        if requires_confirmation:
            logger.info("Quote change needs confirmation: %+.1f%% (%s)",
                        percent_change, _signed_kr(absolute_change))

        return DeltaReport(
            previous_total=previous.grand_total,
            new_total=current.grand_total,
            absolute_change=absolute_change,
            percent_change=percent_change,
            labor_change=labor_change,
            material_change=material_change,
            deduction_change=deduction_change,
            added_items=added,
            removed_items=removed,
            modified_items=modified,
            warnings=warnings,
            requires_confirmation=requires_confirmation,
        )

    def _diff_items(self, previous_items: List[LineItem], current_items: List[LineItem]):
        """
        Pair items by normalized label and occurrence, so a second line with
        the same label is matched to the second line of the other version.
        Returns (added, removed, modified).
        """
        previous_map = _keyed(previous_items)
        current_map = _keyed(current_items)

        added = [i for key, i in current_map.items() if key not in previous_map]
        removed = [i for key, i in previous_map.items() if key not in current_map]
        modified = [
            ItemChange(label=i.label, previous_total=previous_map[key].total, new_total=i.total)
            for key, i in current_map.items()
            if key in previous_map and previous_map[key].total != i.total
        ]
        return added, removed, modified

    def _explain_swing(self, previous: Quote, current: Quote,
                       absolute_change: float, percent_change: float,
                       labor_change: float, material_change: float,
                       deduction_change: float,
                       added: List[LineItem], removed: List[LineItem],
                       modified: List[ItemChange]) -> List[QuoteWarning]:
        direction = "rose" if absolute_change > 0 else "fell"
        warnings = [QuoteWarning(
            code="PRICE_SWING",
            severity=Severity.CAUTION,
            message=(
                f"Total {direction} {abs(percent_change):.1f}% "
                f"({_kr(previous.grand_total)} → {_kr(current.grand_total)})."
            ),
            ref="total",
        )]

        if current.category != previous.category:
            warnings.append(QuoteWarning(
                code="CATEGORY_CHANGED",
                severity=Severity.CAUTION,
                message=(
                    f"Job category changed from {previous.category.value} to "
                    f"{current.category.value}; rules and deduction scheme changed with it."
                ),
                ref="category",
            ))

        if labor_change:
            warnings.append(QuoteWarning(
                code="LABOR_CHANGED",
                severity=Severity.CAUTION,
                message=(
                    f"Labor {_signed_kr(labor_change)} "
                    f"({_pct(labor_change, previous.labor_total):+.1f}%, "
                    f"{_kr(previous.labor_total)} → {_kr(current.labor_total)})."
                ),
                ref="labor_total",
            ))

        if material_change:
            warnings.append(QuoteWarning(
                code="MATERIAL_CHANGED",
                severity=Severity.CAUTION,
                message=(
                    f"Material {_signed_kr(material_change)} "
                    f"({_pct(material_change, previous.material_total):+.1f}%, "
                    f"{_kr(previous.material_total)} → {_kr(current.material_total)})."
                ),
                ref="material_total",
            ))

        if deduction_change:
            warnings.append(QuoteWarning(
                code="DEDUCTION_CHANGED",
                severity=Severity.INFO,
                message=(
                    f"{current.deduction.type.value.upper()} deduction "
                    f"{_signed_kr(deduction_change)} "
                    f"({_kr(previous.deduction.amount)} → {_kr(current.deduction.amount)})."
                ),
                ref="deduction",
            ))

        warnings.extend(self._item_contributors(added, removed, modified))

        previous_ids = {w.identity for w in previous.warnings if w.code in PROPORTION_CODES}
        for w in current.warnings:
            if w.code in PROPORTION_CODES and w.identity not in previous_ids:
                warnings.append(QuoteWarning(
                    code="NEW_PROPORTION_WARNING",
                    severity=Severity.CAUTION,
                    message=f"Likely cause: {w.message}",
                    ref=w.ref,
                ))

        return warnings

    def _item_contributors(self, added: List[LineItem], removed: List[LineItem],
                           modified: List[ItemChange]) -> List[QuoteWarning]:
        """The largest line-item movements, biggest first."""
        contributions = []
        for item in added:
            contributions.append((abs(item.total), QuoteWarning(
                code="ITEM_ADDED",
                severity=Severity.INFO,
                message=f"New item {item.label}: {_signed_kr(item.total)}.",
                ref=f"item:{normalize_label(item.label)}",
            )))
        for item in removed:
            contributions.append((abs(item.total), QuoteWarning(
                code="ITEM_REMOVED",
                severity=Severity.INFO,
                message=f"Removed item {item.label}: {_signed_kr(-item.total)}.",
                ref=f"item:{normalize_label(item.label)}",
            )))
        for change in modified:
            contributions.append((abs(change.difference), QuoteWarning(
                code="ITEM_CHANGED",
                severity=Severity.INFO,
                message=(
                    f"{change.label}: {_kr(change.previous_total)} → "
                    f"{_kr(change.new_total)} ({_signed_kr(change.difference)})."
                ),
                ref=f"item:{normalize_label(change.label)}",
            )))

        contributions.sort(key=lambda c: c[0], reverse=True)
        return [w for _, w in contributions[:self.max_item_warnings]]

    def _check_intent(self, user_message: str, previous: Quote, current: Quote,
                      absolute_change: float) -> List[QuoteWarning]:
        """Price should move in the direction the user asked for."""
        text = user_message.lower()
        is_adding = any(kw in text for kw in ADD_KEYWORDS)
        is_removing = any(kw in text for kw in REMOVE_KEYWORDS)

        if is_adding and not is_removing and absolute_change < 0:
            return [QuoteWarning(
                code="PRICE_DIRECTION",
                severity=Severity.BLOCKING,
                message=(
                    f"Work was added but the total fell from {_kr(previous.grand_total)} "
                    f"to {_kr(current.grand_total)}."
                ),
                ref="intent:add",
            )]
        if is_removing and not is_adding and absolute_change > 0:
            return [QuoteWarning(
                code="PRICE_DIRECTION",
                severity=Severity.CAUTION,
                message=(
                    f"Work was removed but the total rose from {_kr(previous.grand_total)} "
                    f"to {_kr(current.grand_total)}."
                ),
                ref="intent:remove",
            )]
        return []


_engine = DeltaEngine()


def compare_quotes(previous: Quote, current: Quote,
                   threshold: Optional[float] = None,
                   user_message: Optional[str] = None) -> DeltaReport:
    return _engine.compare(previous, current, threshold, user_message)

"""
Proportion Checker — flags line items that are out of proportion to each other.

Annotates only. Never rejects a well-formed quote, never touches quantities
or costs. Malformed line items raise InvalidLineItem before any rule runs.
A rule whose items are not in the quote simply does not fire.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from .line_items import validate_line_items
from .models import (
    Category, ItemKind, LineItem, Quote, QuoteWarning, RelationRule, Severity,
)
from .relation_rules import get_relation_rules, max_labor_share

logger = logging.getLogger(__name__)


def _matches(item: LineItem, patterns: Iterable[str], kind: Optional[ItemKind]) -> bool:
    if kind is not None and item.kind != kind:
        return False
    label = item.label.lower()
    return any(p in label for p in patterns)


class ProportionChecker:
    """
    Checks a drafted quote against its category's relation rules, plus one
    general rule: no single labor item should swallow most of the labor cost.
    """

    MIN_LABOR_ITEMS_FOR_SHARE_CHECK = 2

    def check(self, quote: Quote, category: Category,
              rules: Optional[Sequence[RelationRule]] = None) -> List[QuoteWarning]:
        validate_line_items(quote.line_items)
        if rules is None:
            rules = get_relation_rules(category)
        if not rules:
            return []

        warnings = []
        for rule in rules:
            warning = self._check_rule(quote.line_items, rule)
            if warning is not None:
                warnings.append(warning)

        warnings.extend(self._check_labor_share(quote, category))
        return warnings

    def _check_rule(self, items: Sequence[LineItem],
                    rule: RelationRule) -> Optional[QuoteWarning]:
        left = [i for i in items if _matches(i, rule.item_pattern, rule.item_kind)]
        if not left:
            return None

        # An item counted on the left is never its own companion
        left_ids = {id(i) for i in left}
        right = [
            i for i in items
            if id(i) not in left_ids and _matches(i, rule.related_pattern, rule.related_kind)
        ]
        left_labels = ", ".join(i.label for i in left)

        if not right:
            if rule.co_occurring:
                return QuoteWarning(
                    code="COMPANION_MISSING",
                    severity=Severity.INFO,
                    message=(
                        f"{left_labels} is quoted without a matching "
                        f"{' / '.join(rule.related_pattern)} item. {rule.note}."
                    ),
                    ref=rule.rule_id,
                )
            return None

        denominator = sum(i.basis_value(rule.basis) for i in right)
        if denominator <= 0:
            logger.debug("Rule %s skipped: companion total is zero", rule.rule_id)
            return None

        numerator = sum(i.basis_value(rule.basis) for i in left)
        ratio = numerator / denominator
        right_labels = ", ".join(i.label for i in right)

        if ratio > rule.upper_bound:
            direction, code = "over-provisioned", "PROPORTION_OVER"
        elif ratio < rule.lower_bound:
            direction, code = "under-provisioned", "PROPORTION_UNDER"
        else:
            logger.debug("Rule %s ok: ratio %.2f", rule.rule_id, ratio)
            return None

        return QuoteWarning(
            code=code,
            severity=Severity.CAUTION,
            message=(
                f"{left_labels} looks {direction} relative to {right_labels}: "
                f"{rule.basis.value} ratio {ratio:.2f}, expected "
                f"{rule.ratio_min:g}-{rule.ratio_max:g}. {rule.note}."
            ),
            ref=rule.rule_id,
        )

    def _check_labor_share(self, quote: Quote, category: Category) -> List[QuoteWarning]:
        labor = quote.items_of_kind(ItemKind.LABOR)
        if len(labor) < self.MIN_LABOR_ITEMS_FOR_SHARE_CHECK:
            return []

        labor_total = sum(i.total for i in labor)
        if labor_total <= 0:
            return []

        limit = max_labor_share(category)
        warnings = []
        for item in labor:
            share = item.total / labor_total
            if share > limit:
                warnings.append(QuoteWarning(
                    code="ITEM_DOMINATES",
                    severity=Severity.CAUTION,
                    message=(
                        f"{item.label} is {round(share * 100)}% of the labor cost "
                        f"({item.total:,.0f} of {labor_total:,.0f} kr), "
                        f"expected at most {round(limit * 100)}% for {Category(category).value}."
                    ),
                    ref=f"share:{item.label.lower()}",
                ))
        return warnings


_checker = ProportionChecker()


def check_proportions(quote: Quote, category: Category,
                      rules: Optional[Sequence[RelationRule]] = None) -> List[QuoteWarning]:
    """Module-level entry point. Uses the category's authored rules unless given."""
    return _checker.check(quote, category, rules)

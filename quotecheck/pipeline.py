"""
Quote Pipeline — runs the engine over one drafted quote.

Order matters and is fixed:
  line item checks → category → relation rules → proportion warnings →
  deduction → totals → (if a previous accepted quote exists) delta report.

Input: the description, the drafted line items and optional context.
Output: QuoteEvaluation {quote, delta}. Inputs are never modified.
"""

import logging
from typing import Iterable, Optional

from .category_detector import detect_category
from .deduction_calculator import DeductionCalculator
from .delta_engine import DeltaEngine
from .line_items import labor_subtotal, material_subtotal, validate_line_items
from .models import (
    LineItem, Quote, QuoteEvaluation, QuoteWarning, Severity,
)
from .proportion_checker import ProportionChecker
from .relation_rules import get_relation_rules

logger = logging.getLogger(__name__)


class QuotePipeline:
    """
    Validates and annotates a drafted quote, then compares it with the
    previous accepted version when there is one.
    """

    def __init__(self, deduction_calculator: Optional[DeductionCalculator] = None,
                 delta_engine: Optional[DeltaEngine] = None):
        self.proportion_checker = ProportionChecker()
        self.deduction_calculator = deduction_calculator or DeductionCalculator()
        self.delta_engine = delta_engine or DeltaEngine()

    def build_quote(self, description: str, line_items: Iterable[LineItem],
                    job_type_hint: Optional[str] = None,
                    prior_deduction_used: float = 0.0,
                    caps: Optional[dict] = None) -> Quote:
        """
        Builds a finalized Quote from drafted line items.
        Raises InvalidLineItem if any drafted figure is malformed.
        """
        items = validate_line_items(line_items)
        category = detect_category(description, job_type_hint)

        labor_total = labor_subtotal(items)
        material_total = material_subtotal(items)
        draft = Quote(
            category=category,
            line_items=items,
            labor_total=labor_total,
            material_total=material_total,
            grand_total=round(labor_total + material_total, 2),
        )

        rules = get_relation_rules(category)
        warnings = self.proportion_checker.check(draft, category, rules)

        deduction = self.deduction_calculator.compute(
            category, labor_total, prior_deduction_used, caps,
        )
        if deduction.cap_exhausted:
            warnings.append(QuoteWarning(
                code="DEDUCTION_CAP_EXHAUSTED",
                severity=Severity.INFO,
                message=(
                    f"The job qualifies for {deduction.type.value.upper()} but this "
                    f"year's cap is already used up; no deduction applied."
                ),
                ref="deduction",
            ))

        quote = draft.model_copy(update={
            "deduction": deduction,
            "grand_total": round(labor_total + material_total - deduction.amount, 2),
            "warnings": warnings,
        })
        logger.info(
            "Built %s quote: %d items, total %.2f (%s %.2f), %d warnings",
            category.value, len(items), quote.grand_total,
            deduction.type.value, deduction.amount, len(warnings),
        )
        return quote

    def evaluate(self, description: str, line_items: Iterable[LineItem],
                 job_type_hint: Optional[str] = None,
                 prior_deduction_used: float = 0.0,
                 caps: Optional[dict] = None,
                 previous: Optional[Quote] = None,
                 threshold: Optional[float] = None,
                 user_message: Optional[str] = None) -> QuoteEvaluation:
        quote = self.build_quote(
            description, line_items, job_type_hint, prior_deduction_used, caps,
        )

        if previous is None:
            return QuoteEvaluation(quote=quote)

        delta = self.delta_engine.compare(previous, quote, threshold, user_message)
        if delta.requires_confirmation:
            quote = quote.model_copy(update={"needs_confirmation": True})
        return QuoteEvaluation(quote=quote, delta=delta)


_pipeline = QuotePipeline()


def evaluate_quote(description: str, line_items: Iterable[LineItem],
                   job_type_hint: Optional[str] = None,
                   prior_deduction_used: float = 0.0,
                   caps: Optional[dict] = None,
                   previous: Optional[Quote] = None,
                   threshold: Optional[float] = None,
                   user_message: Optional[str] = None) -> QuoteEvaluation:
    return _pipeline.evaluate(
        description, line_items, job_type_hint, prior_deduction_used, caps,
        previous, threshold, user_message,
    )

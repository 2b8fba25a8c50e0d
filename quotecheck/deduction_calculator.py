"""
Deduction Calculator — ROT/RUT tax deduction for a quote.

Only labor is deductible. Renovation trades get ROT, household services get
RUT, everything else gets nothing. The yearly cap is per person and shared
across jobs, so the caller passes in what has already been used this year.

An exhausted cap is a normal outcome: the result keeps its scheme with
amount 0 so the caller can say "cap used up" rather than "not eligible".
"""

import logging
from typing import Dict, List, Optional

from .config import settings
from .models import Category, DeductionResult, DeductionType, QuoteWarning, Severity

logger = logging.getLogger(__name__)


SCHEME_BY_CATEGORY: Dict[Category, DeductionType] = {
    Category.PAINTING: DeductionType.ROT,
    Category.BATHROOM: DeductionType.ROT,
    Category.KITCHEN: DeductionType.ROT,
    Category.ELECTRICAL: DeductionType.ROT,
    Category.PLUMBING: DeductionType.ROT,
    Category.FLOORING: DeductionType.ROT,
    Category.FACADE: DeductionType.ROT,
    Category.WINDOW_DOOR: DeductionType.ROT,
    Category.ROOF: DeductionType.ROT,
    Category.CLEANING: DeductionType.RUT,
    Category.GARDEN: DeductionType.RUT,
    Category.OTHER: DeductionType.NONE,
}

# Key pairs an explicit deduction may be stored under, newest first
_EXPLICIT_KEYS = [
    ("type", "amount"),
    ("deduction_type", "deduction_amount"),
    ("deductionType", "deductionAmount"),
]

# Scheme-specific amounts used by older stored quotes
_LEGACY_KEYS = [
    (DeductionType.ROT, ("rotDeduction", "rot_deduction")),
    (DeductionType.RUT, ("rutDeduction", "rut_deduction")),
]


def scheme_for(category: Category) -> DeductionType:
    return SCHEME_BY_CATEGORY.get(Category(category), DeductionType.NONE)


class DeductionCalculator:
    """Computes, normalizes and audits DeductionResult values."""

    def __init__(self, caps: Optional[dict] = None, percentage: Optional[int] = None):
        self.caps = caps if caps is not None else settings.deduction_caps
        self.percentage = percentage if percentage is not None else settings.DEDUCTION_PERCENTAGE

    def compute(self, category: Category, labor_total: float,
                prior_deduction_used: float = 0.0,
                caps: Optional[dict] = None) -> DeductionResult:
        if labor_total < 0:
            raise ValueError(f"labor_total must be non-negative, got {labor_total}")
        if prior_deduction_used is not None and prior_deduction_used < 0:
            raise ValueError(
                f"prior_deduction_used must be non-negative, got {prior_deduction_used}"
            )

        scheme = scheme_for(category)
        if scheme == DeductionType.NONE:
            return DeductionResult()

        caps = caps if caps is not None else self.caps
        cap = float(caps.get(scheme.value, 0.0))
        remaining_cap = min(cap, max(cap - (prior_deduction_used or 0.0), 0.0))
        raw_amount = labor_total * self.percentage / 100.0
        amount = min(raw_amount, remaining_cap)

        if remaining_cap <= 0:
            logger.info("%s cap exhausted (used %.0f of %.0f kr)",
                        scheme.value.upper(), prior_deduction_used, cap)
        elif raw_amount > remaining_cap:
            logger.debug("%s deduction clamped to remaining cap %.0f kr",
                         scheme.value.upper(), remaining_cap)

        return DeductionResult(
            type=scheme,
            amount=round(amount, 2),
            percentage=self.percentage,
            remaining_cap=round(remaining_cap, 2),
        )

    def normalize(self, raw) -> DeductionResult:
        """
        Read a deduction in any stored shape.

        Priority: explicit type/amount pair (top level, then under "summary"),
        then a scheme-specific legacy amount, then none/0. Normalizing an
        already normalized result returns it unchanged.
        """
        if raw is None:
            return DeductionResult()
        if isinstance(raw, DeductionResult):
            return raw
        if not isinstance(raw, dict):
            raise TypeError(f"Cannot normalize deduction from {type(raw).__name__}")

        # A whole stored quote keeps the block under "deduction" or "summary"
        sources = [raw] + [
            raw[key] for key in ("deduction", "summary") if isinstance(raw.get(key), dict)
        ]

        scheme = self._explicit_type(sources)
        if scheme is None:
            scheme, amount = self._legacy_amount(sources)
        elif scheme != DeductionType.NONE:
            amount = self._explicit_amount(sources, scheme)

        if scheme is None or scheme == DeductionType.NONE:
            return DeductionResult()

        remaining_cap = next(
            (s["remaining_cap"] for s in sources if s.get("remaining_cap") is not None), None,
        )
        return DeductionResult(
            type=scheme,
            amount=float(amount),
            percentage=self.percentage,
            remaining_cap=remaining_cap,
        )

    def _explicit_type(self, sources: List[dict]) -> Optional[DeductionType]:
        for source in sources:
            for type_key, _ in _EXPLICIT_KEYS:
                value = source.get(type_key)
                if value is None:
                    continue
                if isinstance(value, DeductionType):
                    return value
                try:
                    return DeductionType(str(value).lower())
                except ValueError:
                    logger.warning("Unknown deduction type %r, treating as none", value)
                    return DeductionType.NONE
        return None

    def _explicit_amount(self, sources: List[dict], scheme: DeductionType) -> float:
        for source in sources:
            for _, amount_key in _EXPLICIT_KEYS:
                if source.get(amount_key) is not None:
                    return float(source[amount_key])
        # Explicit type with the amount still under the scheme's legacy key
        legacy_keys = dict(_LEGACY_KEYS)[scheme]
        for source in sources:
            for key in legacy_keys:
                if source.get(key) is not None:
                    return float(source[key])
        return 0.0

    def _legacy_amount(self, sources: List[dict]):
        for source in sources:
            for scheme, keys in _LEGACY_KEYS:
                for key in keys:
                    if source.get(key):
                        return scheme, float(source[key])
        return None, 0.0

    def validate(self, claimed: DeductionResult, category: Category, labor_total: float,
                 prior_deduction_used: float = 0.0,
                 caps: Optional[dict] = None) -> List[QuoteWarning]:
        """
        Audit a deduction someone else computed (e.g. the drafting model)
        against what the rules give. Returns caution warnings, never raises
        for a wrong claim.
        """
        expected = self.compute(category, labor_total, prior_deduction_used, caps)
        warnings = []

        if claimed.type != expected.type:
            warnings.append(QuoteWarning(
                code="DEDUCTION_SCHEME",
                severity=Severity.CAUTION,
                message=(
                    f"Deduction claimed as {claimed.type.value.upper()} but "
                    f"{Category(category).value} work qualifies for "
                    f"{expected.type.value.upper()}."
                ),
                ref="deduction:type",
            ))
            return warnings

        if claimed.percentage != expected.percentage:
            warnings.append(QuoteWarning(
                code="DEDUCTION_PERCENTAGE",
                severity=Severity.CAUTION,
                message=(
                    f"Deduction uses {claimed.percentage}% but "
                    f"{expected.percentage}% applies to {expected.type.value.upper()}."
                ),
                ref="deduction:percentage",
            ))

        if abs(claimed.amount - expected.amount) > settings.DEDUCTION_TOLERANCE:
            warnings.append(QuoteWarning(
                code="DEDUCTION_AMOUNT",
                severity=Severity.CAUTION,
                message=(
                    f"Deduction of {claimed.amount:,.0f} kr claimed, expected "
                    f"{expected.amount:,.0f} kr ({expected.percentage}% of "
                    f"{labor_total:,.0f} kr labor)."
                ),
                ref="deduction:amount",
            ))

        return warnings


_calculator = DeductionCalculator()


def compute_deduction(category: Category, labor_total: float,
                      prior_deduction_used: float = 0.0,
                      caps: Optional[dict] = None) -> DeductionResult:
    return _calculator.compute(category, labor_total, prior_deduction_used, caps)


def normalize_deduction(raw) -> DeductionResult:
    return _calculator.normalize(raw)


def validate_deduction(claimed, category: Category, labor_total: float,
                       prior_deduction_used: float = 0.0,
                       caps: Optional[dict] = None) -> List[QuoteWarning]:
    return _calculator.validate(
        normalize_deduction(claimed), category, labor_total, prior_deduction_used, caps,
    )

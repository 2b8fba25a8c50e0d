"""
Quote validation and revision-consistency engine.

Classifies a job, checks line item proportions, computes the ROT/RUT
deduction and explains price swings between quote versions.
"""

from .category_detector import detect_category
from .deduction_calculator import compute_deduction, normalize_deduction, validate_deduction
from .delta_engine import compare_quotes
from .errors import InvalidLineItem
from .pipeline import evaluate_quote
from .proportion_checker import check_proportions
from .relation_rules import get_relation_rules

__all__ = [
    "InvalidLineItem",
    "check_proportions",
    "compare_quotes",
    "compute_deduction",
    "detect_category",
    "evaluate_quote",
    "get_relation_rules",
    "normalize_deduction",
    "validate_deduction",
]

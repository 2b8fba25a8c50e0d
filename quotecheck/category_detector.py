"""
Category Detector — maps a job description to one trade category.

Keyword matching, first match wins. The order of CATEGORY_KEYWORDS is part of
the contract: a description that mentions both "måla" and "badrum" is a
painting job because painting is tested first.

The job-type hint (from the intake form) is tried before the free text.
"""

import logging
import re
from typing import Optional

from .models import Category

logger = logging.getLogger(__name__)

# Keywords shorter than this only match at the start of a word
_WORD_START_MAX_LEN = 2

# Ordinary words that start with a short keyword and must not trigger it
_WORD_START_EXCLUDES = {
    "el": ["eller", "elva", "elfte", "elev", "elever", "eleven", "elak", "elaka"],
}

# Ordered (category, keywords). Swedish trade terms, then English aliases so
# a category name passed as the hint resolves to itself.
CATEGORY_KEYWORDS = [
    (Category.PAINTING, ["måla", "målning", "färg", "paint"]),
    (Category.BATHROOM, ["badrum", "våtrum", "dusch", "wc", "bathroom"]),
    (Category.KITCHEN, ["kök", "kitchen"]),
    (Category.ELECTRICAL, ["el", "uttag", "belysning", "electric"]),
    (Category.PLUMBING, ["vvs", "rör", "avlopp", "plumbing"]),
    (Category.GARDEN, ["trädgård", "gräs", "träd", "garden"]),
    (Category.CLEANING, ["städ", "flytt", "cleaning"]),
    (Category.FLOORING, ["golv", "parkett", "klinker", "floor"]),
    (Category.FACADE, ["puts", "fasad", "facade"]),
    (Category.WINDOW_DOOR, ["fönster", "dörr", "window", "door"]),
    (Category.ROOF, ["tak", "roof"]),
]


def _compile(keyword: str) -> re.Pattern:
    if len(keyword) <= _WORD_START_MAX_LEN:
        pattern = r"(?<!\w)" + re.escape(keyword)
        excludes = _WORD_START_EXCLUDES.get(keyword)
        if excludes:
            rests = "|".join(re.escape(word[len(keyword):]) for word in excludes)
            pattern += r"(?!(?:" + rests + r")(?!\w))"
        return re.compile(pattern)
    return re.compile(re.escape(keyword))


_COMPILED_RULES = [
    (category, [_compile(kw) for kw in keywords])
    for category, keywords in CATEGORY_KEYWORDS
]


def match_category(text: str) -> Optional[Category]:
    """Walk the rule list against one text. Returns None if nothing matches."""
    if not text:
        return None
    normalized = text.lower()
    for category, patterns in _COMPILED_RULES:
        for pattern in patterns:
            if pattern.search(normalized):
                return category
    return None


def detect_category(description: str, job_type_hint: Optional[str] = None) -> Category:
    """
    Classify a job. Hint first, then the description, then Category.OTHER.
    Never raises.
    """
    if job_type_hint:
        category = match_category(job_type_hint)
        if category is not None:
            logger.debug("Category %s from hint %r", category.value, job_type_hint)
            return category

    category = match_category(description or "")
    if category is not None:
        logger.debug("Category %s from description", category.value)
        return category

    return Category.OTHER

"""
Relation rules — expected proportions between line items, per category.

Static table. Ratios come from trade consumption figures and the expected
labor-share bands used when reviewing drafted quotes:
  painting   paint ~0.15 l/m², primer ~0.10 l/m²; filling 20-30%,
             top coats 45-65% of painting hours
  bathroom   floor tiles ~1.1 m²/m² floor, waterproofing ~1.2, wall tiles ~2.5,
             heating mat ~1.0; demolition 10-20%, tiling 25-35% of hours
  kitchen    demolition 10-20%, tiling 5-12%, cabinet fitting 35-50% of hours
  electrical ~1.5 h per outlet; ~4 h installation per 1.5 h connection/testing
  garden     felling ~3 h, cutting and removal ~2 h, stump grinding ~1.5 h
  cleaning   cleaning agents ~500 kr per ~2 250 kr of cleaning labor
Patterns are lowercase substrings matched against line item labels.
"""

from typing import Dict, Tuple

from .models import Category, ItemKind, RatioBasis, RelationRule

LABOR = ItemKind.LABOR
MATERIAL = ItemKind.MATERIAL


_PAINTING = (
    RelationRule(
        rule_id="painting:primer/paint",
        item_pattern=("grundfärg", "primer"),
        related_pattern=("täckfärg", "väggfärg", "takfärg", "färg"),
        basis=RatioBasis.QUANTITY,
        item_kind=MATERIAL,
        related_kind=MATERIAL,
        ratio_min=0.4,
        ratio_max=1.0,
        tolerance=0.15,
        note="Primer volume should track top-coat volume",
    ),
    RelationRule(
        rule_id="painting:filling/coats",
        item_pattern=("spackling", "spackla", "slipning"),
        related_pattern=("strykning", "målning"),
        basis=RatioBasis.COST,
        item_kind=LABOR,
        related_kind=LABOR,
        ratio_min=0.3,
        ratio_max=0.67,
        tolerance=0.15,
        note="Filling and sanding labor against coat labor",
    ),
    RelationRule(
        rule_id="painting:masking/paint",
        item_pattern=("maskering", "skyddsduk", "täckpapp"),
        related_pattern=("färg",),
        basis=RatioBasis.COST,
        item_kind=MATERIAL,
        related_kind=MATERIAL,
        ratio_min=0.05,
        ratio_max=0.5,
        tolerance=0.10,
        note="Masking material against paint cost",
    ),
)

_BATHROOM = (
    RelationRule(
        rule_id="bathroom:floor_tiles/waterproofing",
        item_pattern=("klinker",),
        related_pattern=("tätskikt",),
        basis=RatioBasis.QUANTITY,
        item_kind=MATERIAL,
        related_kind=MATERIAL,
        ratio_min=0.3,
        ratio_max=1.2,
        tolerance=0.10,
        co_occurring=True,
        note="Tiled wet-room floors require a waterproofing layer",
    ),
    RelationRule(
        rule_id="bathroom:wall_tiles/floor_tiles",
        item_pattern=("kakel",),
        related_pattern=("klinker",),
        basis=RatioBasis.QUANTITY,
        item_kind=MATERIAL,
        related_kind=MATERIAL,
        ratio_min=1.2,
        ratio_max=4.0,
        tolerance=0.10,
        note="Wall tile area against floor tile area",
    ),
    RelationRule(
        rule_id="bathroom:heating_mat/floor_tiles",
        item_pattern=("golvvärme",),
        related_pattern=("klinker",),
        basis=RatioBasis.QUANTITY,
        item_kind=MATERIAL,
        related_kind=MATERIAL,
        ratio_min=0.6,
        ratio_max=1.1,
        tolerance=0.10,
        note="Heating mat cannot exceed the tiled floor",
    ),
    RelationRule(
        rule_id="bathroom:demolition/tiling",
        item_pattern=("rivning", "demontering"),
        related_pattern=("plattsättning", "kakelsättning", "klinkersättning", "kakling"),
        basis=RatioBasis.COST,
        item_kind=LABOR,
        related_kind=LABOR,
        ratio_min=0.29,
        ratio_max=0.8,
        tolerance=0.15,
        note="Demolition labor against tiling labor",
    ),
)

_KITCHEN = (
    RelationRule(
        rule_id="kitchen:demolition/cabinets",
        item_pattern=("rivning", "demontering"),
        related_pattern=("skåp", "montering", "inredning"),
        basis=RatioBasis.COST,
        item_kind=LABOR,
        related_kind=LABOR,
        ratio_min=0.2,
        ratio_max=0.57,
        tolerance=0.15,
        note="Demolition labor against cabinet fitting",
    ),
    RelationRule(
        rule_id="kitchen:backsplash/cabinets",
        item_pattern=("kakel", "stänkskydd", "backsplash"),
        related_pattern=("skåp", "montering", "inredning"),
        basis=RatioBasis.COST,
        item_kind=LABOR,
        related_kind=LABOR,
        ratio_min=0.1,
        ratio_max=0.34,
        tolerance=0.15,
        note="Backsplash tiling against cabinet fitting",
    ),
)

_ELECTRICAL = (
    RelationRule(
        rule_id="electrical:installation/outlets",
        item_pattern=("installation",),
        related_pattern=("uttag", "strömbrytare"),
        basis=RatioBasis.QUANTITY,
        item_kind=LABOR,
        related_kind=MATERIAL,
        ratio_min=0.75,
        ratio_max=3.0,
        tolerance=0.10,
        note="Installation hours per outlet or switch",
    ),
    RelationRule(
        rule_id="electrical:installation/testing",
        item_pattern=("installation",),
        related_pattern=("inkoppling", "testning", "provning"),
        basis=RatioBasis.QUANTITY,
        item_kind=LABOR,
        related_kind=LABOR,
        ratio_min=1.25,
        ratio_max=6.7,
        tolerance=0.10,
        co_occurring=True,
        note="New installations must be connected and tested",
    ),
)

_GARDEN = (
    RelationRule(
        rule_id="garden:felling/removal",
        item_pattern=("fällning",),
        related_pattern=("bortforsling", "kapning"),
        basis=RatioBasis.QUANTITY,
        item_kind=LABOR,
        related_kind=LABOR,
        ratio_min=0.67,
        ratio_max=3.3,
        tolerance=0.10,
        co_occurring=True,
        note="Felled trees are normally cut up and hauled away",
    ),
    RelationRule(
        rule_id="garden:stump/felling",
        item_pattern=("stubb",),
        related_pattern=("fällning",),
        basis=RatioBasis.QUANTITY,
        item_kind=LABOR,
        related_kind=LABOR,
        ratio_min=0.2,
        ratio_max=1.0,
        tolerance=0.10,
        note="Stump grinding hours against felling hours",
    ),
)

_CLEANING = (
    RelationRule(
        rule_id="cleaning:supplies/labor",
        item_pattern=("städmaterial", "rengöringsmedel"),
        related_pattern=("städ", "fönsterputs", "sanitet"),
        basis=RatioBasis.COST,
        item_kind=MATERIAL,
        related_kind=LABOR,
        ratio_min=0.02,
        ratio_max=0.35,
        tolerance=0.10,
        note="Cleaning supplies against cleaning labor",
    ),
)

_FLOORING = (
    RelationRule(
        rule_id="flooring:floor/underlay",
        item_pattern=("parkett", "laminat"),
        related_pattern=("underlag", "stegljudsdämpning"),
        basis=RatioBasis.QUANTITY,
        item_kind=MATERIAL,
        related_kind=MATERIAL,
        ratio_min=0.83,
        ratio_max=1.11,
        tolerance=0.05,
        co_occurring=True,
        note="Floating floors are laid on an underlay",
    ),
)

_ROOF = (
    RelationRule(
        rule_id="roof:underlay/covering",
        item_pattern=("underlagsduk", "underlagspapp"),
        related_pattern=("takpannor", "takplåt", "plåt", "papp"),
        basis=RatioBasis.QUANTITY,
        item_kind=MATERIAL,
        related_kind=MATERIAL,
        ratio_min=0.95,
        ratio_max=1.2,
        tolerance=0.05,
        note="Roof underlay area against covering area",
    ),
)


RELATION_RULES: Dict[Category, Tuple[RelationRule, ...]] = {
    Category.PAINTING: _PAINTING,
    Category.BATHROOM: _BATHROOM,
    Category.KITCHEN: _KITCHEN,
    Category.ELECTRICAL: _ELECTRICAL,
    Category.GARDEN: _GARDEN,
    Category.CLEANING: _CLEANING,
    Category.FLOORING: _FLOORING,
    Category.ROOF: _ROOF,
    # plumbing, facade, window_door, other: nothing authored yet
}

# Share of total labor cost a single labor item may take before it is flagged
MAX_LABOR_SHARE: Dict[Category, float] = {
    Category.BATHROOM: 0.50,
    Category.PAINTING: 0.50,
    Category.KITCHEN: 0.60,
}
DEFAULT_MAX_LABOR_SHARE = 0.60


def get_relation_rules(category: Category) -> Tuple[RelationRule, ...]:
    """Rules for a category, in authored order. Empty tuple when none exist."""
    return RELATION_RULES.get(Category(category), ())


def has_relation_rules(category: Category) -> bool:
    return bool(get_relation_rules(category))


def max_labor_share(category: Category) -> float:
    return MAX_LABOR_SHARE.get(Category(category), DEFAULT_MAX_LABOR_SHARE)

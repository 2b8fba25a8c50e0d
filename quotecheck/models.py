"""
Domain models for the quote validation engine.

Every entity is a frozen pydantic model: components receive snapshots and
return new values, nothing holds a reference to "the" current quote.
"""

import enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, computed_field


# --- Enums ---

class Category(str, enum.Enum):
    PAINTING = "painting"
    BATHROOM = "bathroom"
    KITCHEN = "kitchen"
    ELECTRICAL = "electrical"
    PLUMBING = "plumbing"
    GARDEN = "garden"
    CLEANING = "cleaning"
    FLOORING = "flooring"
    FACADE = "facade"
    WINDOW_DOOR = "window_door"
    ROOF = "roof"
    OTHER = "other"


class ItemKind(str, enum.Enum):
    LABOR = "labor"
    MATERIAL = "material"


class DeductionType(str, enum.Enum):
    ROT = "rot"
    RUT = "rut"
    NONE = "none"


class Severity(str, enum.Enum):
    INFO = "info"
    CAUTION = "caution"
    BLOCKING = "blocking"


class RatioBasis(str, enum.Enum):
    QUANTITY = "quantity"
    COST = "cost"


# --- Quote building blocks ---

class LineItem(BaseModel):
    label: str
    kind: ItemKind
    quantity: float = 1.0
    unit: str = "st"
    unit_cost: float = 0.0
    total: float = 0.0

    model_config = ConfigDict(frozen=True)

    def basis_value(self, basis: RatioBasis) -> float:
        return self.quantity if basis == RatioBasis.QUANTITY else self.total


class QuoteWarning(BaseModel):
    code: str
    severity: Severity
    message: str
    ref: Optional[str] = None  # stable subject id; message numbers may change between versions

    model_config = ConfigDict(frozen=True)

    @property
    def identity(self) -> tuple:
        return (self.code, self.ref or self.message)


class DeductionResult(BaseModel):
    type: DeductionType = DeductionType.NONE
    amount: float = 0.0
    percentage: int = 0
    remaining_cap: Optional[float] = None

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def cap_exhausted(self) -> bool:
        """True when the job is eligible but this year's cap is already used up."""
        return (
            self.type != DeductionType.NONE
            and self.remaining_cap is not None
            and self.remaining_cap <= 0
        )


class Quote(BaseModel):
    category: Category = Category.OTHER
    line_items: List[LineItem] = []
    labor_total: float = 0.0
    material_total: float = 0.0
    grand_total: float = 0.0
    deduction: DeductionResult = DeductionResult()
    warnings: List[QuoteWarning] = []
    needs_confirmation: bool = False

    model_config = ConfigDict(frozen=True)

    def items_of_kind(self, kind: ItemKind) -> List[LineItem]:
        return [item for item in self.line_items if item.kind == kind]


# --- Rule table entries ---

class RelationRule(BaseModel):
    """
    How two groups of line items should co-vary within a category.

    observed = sum(items matching item_pattern) / sum(items matching related_pattern),
    compared on `basis`. Allowed band is
    [ratio_min * (1 - tolerance), ratio_max * (1 + tolerance)].
    A side with a kind only considers items of that kind.
    """
    rule_id: str
    item_pattern: Tuple[str, ...]
    related_pattern: Tuple[str, ...]
    basis: RatioBasis
    item_kind: Optional[ItemKind] = None
    related_kind: Optional[ItemKind] = None
    ratio_min: float
    ratio_max: float
    tolerance: float = 0.10
    co_occurring: bool = False
    note: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def lower_bound(self) -> float:
        return self.ratio_min * (1 - self.tolerance)

    @property
    def upper_bound(self) -> float:
        return self.ratio_max * (1 + self.tolerance)


# --- Revision comparison ---

class ItemChange(BaseModel):
    label: str
    previous_total: float
    new_total: float

    model_config = ConfigDict(frozen=True)

    @property
    def difference(self) -> float:
        return round(self.new_total - self.previous_total, 2)


class DeltaReport(BaseModel):
    previous_total: float
    new_total: float
    absolute_change: float
    percent_change: float
    labor_change: float = 0.0
    material_change: float = 0.0
    deduction_change: float = 0.0
    added_items: List[LineItem] = []
    removed_items: List[LineItem] = []
    modified_items: List[ItemChange] = []
    warnings: List[QuoteWarning] = []
    requires_confirmation: bool = False

    model_config = ConfigDict(frozen=True)


class QuoteEvaluation(BaseModel):
    quote: Quote
    delta: Optional[DeltaReport] = None

    model_config = ConfigDict(frozen=True)

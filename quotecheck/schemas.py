from pydantic import BaseModel
from typing import Optional, List
from .models import Category, DeductionResult, LineItem, Quote, QuoteWarning


class CategoryRequest(BaseModel):
    description: str
    job_type_hint: Optional[str] = None


class CategoryResponse(BaseModel):
    category: Category


class ProportionRequest(BaseModel):
    quote: Quote
    category: Optional[Category] = None  # defaults to quote.category


class ProportionResponse(BaseModel):
    category: Category
    warnings: List[QuoteWarning] = []


class DeductionRequest(BaseModel):
    category: Category
    labor_total: float
    prior_deduction_used: float = 0.0
    rot_cap: Optional[float] = None
    rut_cap: Optional[float] = None


class DeductionValidationRequest(DeductionRequest):
    claimed: dict  # any stored deduction shape, normalized before checking


class DeductionNormalizeRequest(BaseModel):
    raw: Optional[dict] = None


class DeductionValidationResponse(BaseModel):
    claimed: DeductionResult
    expected: DeductionResult
    warnings: List[QuoteWarning] = []


class CompareRequest(BaseModel):
    previous: Quote
    current: Quote
    threshold: Optional[float] = None
    user_message: Optional[str] = None


class EvaluateRequest(BaseModel):
    description: str
    line_items: List[LineItem]
    job_type_hint: Optional[str] = None
    prior_deduction_used: float = 0.0
    previous: Optional[Quote] = None
    threshold: Optional[float] = None
    user_message: Optional[str] = None

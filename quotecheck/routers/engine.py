"""
Engine API — thin HTTP wrapper over the validation engine.

POST /api/engine/category             — classify a job description
GET  /api/engine/rules/{category}     — relation rules for a category
POST /api/engine/proportions          — proportion warnings for a quote
POST /api/engine/deduction            — ROT/RUT deduction for a labor total
POST /api/engine/deduction/normalize  — read a stored deduction in any shape
POST /api/engine/deduction/validate   — audit a claimed deduction
POST /api/engine/compare              — delta report between two quote versions
POST /api/engine/evaluate             — full pipeline for one drafted quote
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException

from .. import schemas
from ..category_detector import detect_category
from ..config import settings
from ..deduction_calculator import compute_deduction, normalize_deduction, validate_deduction
from ..delta_engine import compare_quotes
from ..errors import InvalidLineItem
from ..models import Category, DeductionResult, DeltaReport, QuoteEvaluation, RelationRule
from ..pipeline import evaluate_quote
from ..proportion_checker import check_proportions
from ..relation_rules import get_relation_rules

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/engine", tags=["engine"])


def _caps(request: schemas.DeductionRequest) -> dict:
    return {
        "rot": request.rot_cap if request.rot_cap is not None else settings.ROT_CAP,
        "rut": request.rut_cap if request.rut_cap is not None else settings.RUT_CAP,
    }


@router.post("/category", response_model=schemas.CategoryResponse)
def classify(request: schemas.CategoryRequest):
    return {"category": detect_category(request.description, request.job_type_hint)}


@router.get("/rules/{category}", response_model=List[RelationRule])
def list_rules(category: Category):
    return list(get_relation_rules(category))


@router.post("/proportions", response_model=schemas.ProportionResponse)
def proportions(request: schemas.ProportionRequest):
    category = request.category or request.quote.category
    try:
        warnings = check_proportions(request.quote, category)
    except InvalidLineItem as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    return {"category": category, "warnings": warnings}


@router.post("/deduction", response_model=DeductionResult)
def deduction(request: schemas.DeductionRequest):
    try:
        return compute_deduction(
            request.category, request.labor_total,
            request.prior_deduction_used, _caps(request),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/deduction/normalize", response_model=DeductionResult)
def normalize(request: schemas.DeductionNormalizeRequest):
    return normalize_deduction(request.raw)


@router.post("/deduction/validate", response_model=schemas.DeductionValidationResponse)
def validate(request: schemas.DeductionValidationRequest):
    caps = _caps(request)
    try:
        expected = compute_deduction(
            request.category, request.labor_total, request.prior_deduction_used, caps,
        )
        warnings = validate_deduction(
            request.claimed, request.category, request.labor_total,
            request.prior_deduction_used, caps,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {
        "claimed": normalize_deduction(request.claimed),
        "expected": expected,
        "warnings": warnings,
    }


@router.post("/compare", response_model=DeltaReport)
def compare(request: schemas.CompareRequest):
    try:
        return compare_quotes(
            request.previous, request.current, request.threshold, request.user_message,
        )
    except InvalidLineItem as e:
        raise HTTPException(status_code=422, detail=e.to_dict())


@router.post("/evaluate", response_model=QuoteEvaluation)
def evaluate(request: schemas.EvaluateRequest):
    """
    Run a drafted quote through the whole engine.

    Malformed line items (negative figures, total != quantity × unit_cost)
    are rejected with 422 naming the item and field.
    """
    try:
        return evaluate_quote(
            request.description,
            request.line_items,
            job_type_hint=request.job_type_hint,
            prior_deduction_used=request.prior_deduction_used,
            previous=request.previous,
            threshold=request.threshold,
            user_message=request.user_message,
        )
    except InvalidLineItem as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

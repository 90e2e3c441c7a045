"""
Bracket admin API.

Stateless: every request carries the pool and/or draft it operates on and
gets back a new draft with a fresh layout. Persistence belongs to the caller.
"""
import logging
import random
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from saintfest.config import FONT_PATH, LayoutSettings, get_layout_settings
from saintfest.models.candidate import Candidate, TournamentConfig
from saintfest.models.layout import BracketLayout
from saintfest.models.published import PublishedBracket
from saintfest.models.tournament import BracketEditAction, Tournament
from saintfest.services.bracket_editor import (
    BracketEditError,
    DuplicateCategory,
    InvalidCandidateForCategory,
    InvariantViolation,
    UnknownReference,
    apply_edit,
    available_candidates,
)
from saintfest.services.layout_engine import apply_layout, layout
from saintfest.services.publish import build_published_bracket
from saintfest.services.selection_engine import (
    ExhaustedCategories,
    InsufficientPool,
    SelectionError,
    select,
)
from saintfest.services.text_metrics import EstimatedTextMetrics, PillowTextMetrics, TextMetricsProvider

logger = logging.getLogger(__name__)

router = APIRouter()


def get_text_metrics() -> TextMetricsProvider:
    if FONT_PATH:
        return PillowTextMetrics(FONT_PATH)
    return EstimatedTextMetrics()


# ── Request / response models ────────────────────────────────────────────

class GenerateRequest(BaseModel):
    pool: List[Dict[str, Any]]
    config: TournamentConfig
    seed: Optional[int] = None


class LayoutRequest(BaseModel):
    tournament: Tournament


class EditRequest(BaseModel):
    tournament: Tournament
    pool: List[Dict[str, Any]]
    action: BracketEditAction
    seed: Optional[int] = None


class AvailableCandidatesRequest(BaseModel):
    tournament: Tournament
    pool: List[Dict[str, Any]]
    category_key: str


class PublishRequest(BaseModel):
    tournament: Tournament
    published_by: str


class BracketResponse(BaseModel):
    tournament: Tournament
    layout: BracketLayout


# ── Helpers ──────────────────────────────────────────────────────────────

def _load_pool(records: List[Dict[str, Any]]) -> List[Candidate]:
    try:
        return [Candidate.from_record(r) for r in records]
    except ValueError as e:
        raise HTTPException(status_code=422, detail={"code": "INVALID_POOL", "message": str(e)})


def _rng(seed: Optional[int]) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


def _to_http(exc: Exception) -> HTTPException:
    """Map engine errors onto HTTP status codes with a structured detail."""
    if isinstance(exc, UnknownReference):
        return HTTPException(status_code=404, detail={
            "code": "UNKNOWN_REFERENCE", "message": str(exc),
            "kind": exc.kind, "reference": exc.reference,
        })
    if isinstance(exc, InsufficientPool):
        return HTTPException(status_code=422, detail={
            "code": "INSUFFICIENT_POOL", "message": str(exc),
            "category_key": exc.category_key, "available": exc.available, "shortfall": exc.shortfall,
        })
    if isinstance(exc, ExhaustedCategories):
        return HTTPException(status_code=422, detail={
            "code": "EXHAUSTED_CATEGORIES", "message": str(exc),
            "found": exc.found, "required": exc.required,
        })
    if isinstance(exc, InvalidCandidateForCategory):
        return HTTPException(status_code=422, detail={
            "code": "INVALID_CANDIDATE_FOR_CATEGORY", "message": str(exc),
            "candidate_id": exc.candidate_id, "category_key": exc.category_key,
        })
    if isinstance(exc, DuplicateCategory):
        return HTTPException(status_code=422, detail={
            "code": "DUPLICATE_CATEGORY", "message": str(exc), "category_key": exc.category_key,
        })
    if isinstance(exc, InvariantViolation):
        return HTTPException(status_code=500, detail={
            "code": "INVARIANT_VIOLATION", "message": str(exc), "report": exc.report.to_dict(),
        })
    return HTTPException(status_code=422, detail={"code": "INVALID_EDIT", "message": str(exc)})


def _laid_out(
    tournament: Tournament,
    metrics: TextMetricsProvider,
    settings: LayoutSettings,
) -> BracketResponse:
    try:
        bracket_layout = layout(tournament, metrics, settings)
    except ValueError as e:
        raise HTTPException(status_code=422, detail={"code": "INVALID_BRACKET", "message": str(e)})
    return BracketResponse(tournament=apply_layout(tournament, bracket_layout), layout=bracket_layout)


# ── Endpoints ────────────────────────────────────────────────────────────

@router.post("/brackets/generate", response_model=BracketResponse)
def generate_bracket(
    request: GenerateRequest,
    metrics: TextMetricsProvider = Depends(get_text_metrics),
    settings: LayoutSettings = Depends(get_layout_settings),
):
    """Select 32 saints for the configured year and lay out the bracket"""
    pool = _load_pool(request.pool)
    try:
        tournament = select(pool, request.config, _rng(request.seed))
    except SelectionError as e:
        raise _to_http(e) from e
    return _laid_out(tournament, metrics, settings)


@router.post("/brackets/layout", response_model=BracketLayout)
def layout_bracket(
    request: LayoutRequest,
    metrics: TextMetricsProvider = Depends(get_text_metrics),
    settings: LayoutSettings = Depends(get_layout_settings),
):
    """Recompute positions and connectors for a draft"""
    return _laid_out(request.tournament, metrics, settings).layout


@router.post("/brackets/edit", response_model=BracketResponse)
def edit_bracket(
    request: EditRequest,
    metrics: TextMetricsProvider = Depends(get_text_metrics),
    settings: LayoutSettings = Depends(get_layout_settings),
):
    """
    Apply one edit (swap-category, swap-saint, regenerate-category) and
    return the new draft, re-laid-out. The submitted draft is not modified.
    """
    pool = _load_pool(request.pool)
    try:
        edited = apply_edit(request.tournament, pool, request.action, _rng(request.seed))
    except (BracketEditError, SelectionError) as e:
        raise _to_http(e) from e
    return _laid_out(edited, metrics, settings)


@router.post("/brackets/available-candidates", response_model=List[Candidate])
def list_available_candidates(request: AvailableCandidatesRequest):
    """Saints that could be swapped into a category of the draft"""
    pool = _load_pool(request.pool)
    return available_candidates(request.tournament, pool, request.category_key)


@router.post("/brackets/publish", response_model=PublishedBracket)
def publish_bracket(
    request: PublishRequest,
    metrics: TextMetricsProvider = Depends(get_text_metrics),
    settings: LayoutSettings = Depends(get_layout_settings),
):
    """Flatten a draft into the published export record"""
    laid_out = _laid_out(request.tournament, metrics, settings)
    published = build_published_bracket(
        laid_out.tournament, laid_out.layout, request.published_by, metrics, settings,
    )
    logger.info("Published %s by %s", published.title, published.published_by)
    return published

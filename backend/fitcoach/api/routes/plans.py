"""Fitness plan generation and parsing routes."""
from __future__ import annotations

import os
from datetime import datetime
from functools import lru_cache, partial
from time import perf_counter
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from fitcoach.api.schemas.journey import Journey
from fitcoach.api.schemas.plan import (
    ExerciseFormRequest,
    MealPlanRequest,
    ParseRequest,
    PlanPdfResponse,
    PlanRequest,
    PlanTextResponse,
    SupplementRequest,
    WorkoutPlanRequest,
)
from fitcoach.core.errors import GenerationFailure, RenderFailure
from fitcoach.db.deps import get_db
from fitcoach.observability.metrics import log_metric
from fitcoach.observability.tracing import trace
from fitcoach.services.journey_builder import build_journey, journey_to_payload
from fitcoach.services.pdf_renderer import TIMESTAMP_FORMAT, PdfRenderer
from fitcoach.services.plan_generator import PlanGenerator
from fitcoach.services.routine_service import get_current_routine, save_daily_routine

router = APIRouter(prefix="/fitness", tags=["plans"])


@lru_cache
def get_plan_generator() -> PlanGenerator:
    return PlanGenerator()


@lru_cache
def get_pdf_renderer() -> PdfRenderer:
    return PdfRenderer()


@router.post("/complete-plan", response_model=PlanTextResponse)
def complete_plan(
    payload: PlanRequest,
    http_request: Request,
    generator: PlanGenerator = Depends(get_plan_generator),
) -> PlanTextResponse:
    """Raw plan text with workout, meal and supplement sections."""
    request_id = getattr(http_request.state, "request_id", None)
    plan = _generate(generator, payload, structured=False)
    return PlanTextResponse(plan=plan, request_id=request_id or "")


@router.post("/complete-plan/structured", response_model=Journey)
def complete_plan_structured(
    payload: PlanRequest,
    http_request: Request,
    user_id: Optional[str] = Query(default=None, description="Persist the result as the user's next day"),
    generator: PlanGenerator = Depends(get_plan_generator),
    db: Session = Depends(get_db),
) -> Journey:
    """Generate a plan and parse today's workout and meals into a journey."""
    request_id = getattr(http_request.state, "request_id", None)
    raw_plan = _generate(generator, payload, structured=True)

    current_day = 1
    if user_id:
        latest = get_current_routine(db, user_id)
        current_day = latest.day_number + 1 if latest else 1

    with trace("plans.structure", metadata={"current_day": current_day}, request_id=request_id):
        journey = build_journey(raw_plan, current_day=current_day)
    if user_id:
        save_daily_routine(db, user_id, journey_to_payload(journey))
    return journey


@router.post("/complete-plan/pdf", response_model=PlanPdfResponse)
def complete_plan_pdf(
    payload: PlanRequest,
    generator: PlanGenerator = Depends(get_plan_generator),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> PlanPdfResponse:
    start = perf_counter()
    plan = _generate(generator, payload, structured=False)
    return _pdf_response(renderer, plan, None, start, kind="complete")


@router.post("/workout-plan", response_model=PlanTextResponse)
def workout_plan(
    payload: WorkoutPlanRequest,
    http_request: Request,
    generator: PlanGenerator = Depends(get_plan_generator),
) -> PlanTextResponse:
    request_id = getattr(http_request.state, "request_id", None)
    return PlanTextResponse(plan=_call(generator.workout_plan, payload), request_id=request_id or "")


@router.post("/meal-plan", response_model=PlanTextResponse)
def meal_plan(
    payload: MealPlanRequest,
    http_request: Request,
    generator: PlanGenerator = Depends(get_plan_generator),
) -> PlanTextResponse:
    request_id = getattr(http_request.state, "request_id", None)
    return PlanTextResponse(plan=_call(generator.meal_plan, payload), request_id=request_id or "")


@router.post("/exercise-form", response_model=PlanTextResponse)
def exercise_form(
    payload: ExerciseFormRequest,
    http_request: Request,
    generator: PlanGenerator = Depends(get_plan_generator),
) -> PlanTextResponse:
    """Form cues, common mistakes and muscles worked for one exercise."""
    request_id = getattr(http_request.state, "request_id", None)
    return PlanTextResponse(plan=_call(generator.exercise_form, payload), request_id=request_id or "")


@router.post("/supplements", response_model=PlanTextResponse)
def supplements(
    payload: SupplementRequest,
    http_request: Request,
    generator: PlanGenerator = Depends(get_plan_generator),
) -> PlanTextResponse:
    request_id = getattr(http_request.state, "request_id", None)
    return PlanTextResponse(plan=_call(generator.supplements, payload), request_id=request_id or "")


@router.post("/workout-plan/pdf", response_model=PlanPdfResponse)
def workout_plan_pdf(
    payload: WorkoutPlanRequest,
    file_name: Optional[str] = Query(default=None, alias="fileName"),
    generator: PlanGenerator = Depends(get_plan_generator),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> PlanPdfResponse:
    start = perf_counter()
    plan = _call(generator.workout_plan, payload)
    return _pdf_response(renderer, plan, file_name or _timestamped("workout_plan"), start, kind="workout")


@router.post("/meal-plan/pdf", response_model=PlanPdfResponse)
def meal_plan_pdf(
    payload: MealPlanRequest,
    file_name: Optional[str] = Query(default=None, alias="fileName"),
    generator: PlanGenerator = Depends(get_plan_generator),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> PlanPdfResponse:
    start = perf_counter()
    plan = _call(generator.meal_plan, payload)
    return _pdf_response(renderer, plan, file_name or _timestamped("meal_plan"), start, kind="meal")


@router.post("/parse", response_model=Journey)
def parse_plan(payload: ParseRequest, http_request: Request) -> Journey:
    """Parse caller-supplied plan text without calling the LLM."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("plans.parse", metadata={"chars": len(payload.text)}, request_id=request_id):
        return build_journey(payload.text, current_day=payload.current_day)


def _generate(generator: PlanGenerator, payload: PlanRequest, *, structured: bool) -> str:
    return _call(partial(generator.generate, structured=structured), payload)


def _call(method: Callable[[Any], str], payload: Any) -> str:
    try:
        return method(payload)
    except GenerationFailure as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


def _timestamped(prefix: str) -> str:
    return f"{prefix}_{datetime.now().strftime(TIMESTAMP_FORMAT)}"


def _pdf_response(
    renderer: PdfRenderer,
    text: str,
    suggested_name: Optional[str],
    start: float,
    *,
    kind: str,
) -> PlanPdfResponse:
    try:
        pdf_path = renderer.render(text, suggested_name)
    except RenderFailure as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    elapsed_ms = int((perf_counter() - start) * 1000)
    log_metric("plans.pdf.latency_ms", elapsed_ms, metadata={"kind": kind})
    return PlanPdfResponse(
        success=True,
        pdf_path=pdf_path,
        file_name=os.path.basename(pdf_path),
        file_size_bytes=os.path.getsize(pdf_path),
        generation_time_ms=elapsed_ms,
    )

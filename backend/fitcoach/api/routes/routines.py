"""Daily routine API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from fitcoach.api.schemas.routine import RoutineDeleteResponse, RoutineListResponse, RoutineSummary
from fitcoach.db.deps import get_db
from fitcoach.db.models.daily_routine import DailyRoutine
from fitcoach.observability.metrics import log_metric
from fitcoach.observability.tracing import trace
from fitcoach.services.routine_service import (
    count_completed_routines,
    delete_routines_for_user,
    get_current_routine,
    get_routine_by_day,
    list_routines,
    mark_routine_completed,
)

router = APIRouter(prefix="/fitness/routines", tags=["routines"])


@router.get("/{user_id}", response_model=RoutineListResponse)
def get_routines(user_id: str, http_request: Request, db: Session = Depends(get_db)) -> RoutineListResponse:
    """All stored days for a user, oldest first."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("routines.list", metadata={"user_id": user_id}, request_id=request_id):
        routines = list_routines(db, user_id)
        completed = count_completed_routines(db, user_id)
    log_metric("routines.list.count", len(routines), metadata={"user_id": user_id})
    return RoutineListResponse(
        user_id=user_id,
        total_days=len(routines),
        completed_days=completed,
        routines=[_serialize(routine) for routine in routines],
    )


@router.get("/{user_id}/day/{day_number}", response_model=RoutineSummary)
def get_routine_for_day(user_id: str, day_number: int, db: Session = Depends(get_db)) -> RoutineSummary:
    routine = get_routine_by_day(db, user_id, day_number)
    if not routine:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Routine not found")
    return _serialize(routine)


@router.get("/{user_id}/current", response_model=RoutineSummary)
def get_current(user_id: str, db: Session = Depends(get_db)) -> RoutineSummary:
    routine = get_current_routine(db, user_id)
    if not routine:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No routines for user")
    return _serialize(routine)


@router.put("/{routine_id}/complete", response_model=RoutineSummary)
def complete_routine(routine_id: UUID, http_request: Request, db: Session = Depends(get_db)) -> RoutineSummary:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("routines.complete", metadata={"routine_id": str(routine_id)}, request_id=request_id):
        try:
            routine = mark_routine_completed(db, routine_id)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    log_metric("routines.completed", 1, metadata={"user_id": routine.user_id})
    return _serialize(routine)


@router.delete("/{user_id}", response_model=RoutineDeleteResponse)
def delete_routines(user_id: str, db: Session = Depends(get_db)) -> RoutineDeleteResponse:
    deleted = delete_routines_for_user(db, user_id)
    return RoutineDeleteResponse(user_id=user_id, deleted=deleted)


def _serialize(routine: DailyRoutine) -> RoutineSummary:
    return RoutineSummary(
        id=routine.id,
        user_id=routine.user_id,
        day_number=routine.day_number,
        structured_plan=routine.structured_plan or {},
        completed=bool(routine.completed),
        completed_at=routine.completed_at,
        created_at=routine.created_at,
    )

"""
Schedule generation and progress API routes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..config import Settings, get_settings
from ..errors import InvalidProblemIndex, NotFoundFailure, PersistenceFailure
from ..schemas import (
    GenerateScheduleRequest, GenerateScheduleResponse, ProgressResponse,
    ProgressUpdate, ScheduleDaySchema, ScheduleResponse
)
from ..services.problem_service import Problem
from ..services.progress_service import ScheduleStore, get_schedule_store
from ..services.schedule_service import build_schedule

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.post("/generate", response_model=GenerateScheduleResponse)
def generate_schedule(
    request: GenerateScheduleRequest,
    store: ScheduleStore = Depends(get_schedule_store),
    settings: Settings = Depends(get_settings),
):
    """
    Build a weighted schedule and save it as the user's active schedule.

    Saving is best-effort: if the store fails, the schedule is still returned
    with `saved` set to false.
    """
    problems = [Problem(**p.model_dump()) for p in request.problems if p.name.strip()]
    if not problems:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No problems provided",
        )

    schedule = build_schedule(
        problems,
        topic_days=request.topic_days,
        topic_order=request.topic_order,
        default_days=settings.default_topic_days,
    )

    record_id = None
    error = None
    try:
        record_id = store.save_schedule(request.user_id, schedule)
    except PersistenceFailure as e:
        logger.error("Schedule not saved for %s: %s", request.user_id, e)
        error = str(e)

    return GenerateScheduleResponse(
        message="Schedule generated and saved" if record_id is not None else "Schedule generated but not saved",
        schedule=[ScheduleDaySchema.model_validate(day) for day in schedule],
        record_id=record_id,
        saved=record_id is not None,
        error=error,
    )


@router.post("/progress", response_model=ProgressResponse)
def update_progress(
    update: ProgressUpdate,
    store: ScheduleStore = Depends(get_schedule_store),
):
    """Tick or untick one problem of the user's active schedule."""
    try:
        store.set_completion(update.user_id, update.day_index, update.problem_index, update.completed)
    except InvalidProblemIndex as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundFailure as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return ProgressResponse(success=True)


@router.get("/{user_id}", response_model=ScheduleResponse)
def get_active_schedule(
    user_id: str,
    store: ScheduleStore = Depends(get_schedule_store),
):
    """Get the user's active schedule, or null if none exists."""
    try:
        schedule = store.load_active_schedule(user_id)
    except PersistenceFailure as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if schedule is None:
        return ScheduleResponse(schedule=None)
    return ScheduleResponse(schedule=[ScheduleDaySchema.model_validate(day) for day in schedule])

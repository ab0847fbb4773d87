# -*- coding: utf-8 -*-
"""Workouts — API endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth.security import get_current_user
from ..exercises.catalog import get_exercise
from .models import (
    AddSetResponse,
    PersonalRecord,
    PreviousSessionData,
    ProgressResponse,
    WeeklyVolumeResponse,
    WorkoutSession,
    WorkoutSessionCreateRequest,
    WorkoutSessionDetail,
    WorkoutSessionFinishRequest,
    WorkoutSessionsResponse,
    WorkoutSet,
    WorkoutSetCreateRequest,
)
from .storage import (
    add_set,
    check_and_update_personal_record,
    create_session,
    delete_session,
    delete_set,
    finish_session,
    get_personal_record,
    get_previous_session_data,
    get_session_detail,
    list_personal_records,
    list_sessions,
    progress_data,
    weekly_volume,
)

router = APIRouter(prefix="/api/workouts", tags=["Workouts"])


@router.get("/sessions", response_model=WorkoutSessionsResponse, summary="List workout sessions")
def sessions(
    limit: int = Query(default=50, ge=1, le=500),
    completed_only: bool = Query(default=False),
    user: dict = Depends(get_current_user),
):
    return WorkoutSessionsResponse(sessions=list_sessions(user["id"], limit=limit, completed_only=completed_only))


@router.post("/sessions", response_model=WorkoutSession, summary="Start a workout session")
def start_session(request: WorkoutSessionCreateRequest, user: dict = Depends(get_current_user)):
    return create_session(user["id"], name=request.name, started_at=request.started_at)


@router.get("/sessions/{session_id}", response_model=WorkoutSessionDetail, summary="Session with its sets")
def session_detail(session_id: str, user: dict = Depends(get_current_user)):
    return get_session_detail(user["id"], session_id)


@router.post("/sessions/{session_id}/finish", response_model=WorkoutSession, summary="Finish a workout session")
def finish(session_id: str, request: Optional[WorkoutSessionFinishRequest] = None, user: dict = Depends(get_current_user)):
    ended_at = request.ended_at if request else None
    return finish_session(user["id"], session_id, ended_at=ended_at)


@router.delete("/sessions/{session_id}", summary="Delete a workout session")
def remove_session(session_id: str, user: dict = Depends(get_current_user)):
    delete_session(user["id"], session_id)
    return {"ok": True}


@router.post("/sessions/{session_id}/sets", response_model=AddSetResponse, summary="Log a set")
def log_set(session_id: str, request: WorkoutSetCreateRequest, user: dict = Depends(get_current_user)):
    workout_set = add_set(user["id"], session_id, request)
    record = check_and_update_personal_record(user["id"], workout_set)
    return AddSetResponse(workout_set=workout_set, new_personal_record=record)


@router.delete("/sets/{set_id}", response_model=List[WorkoutSet], summary="Delete a set and renumber the rest")
def remove_set(set_id: str, user: dict = Depends(get_current_user)):
    return delete_set(user["id"], set_id)


@router.get("/personal-records", response_model=List[PersonalRecord], summary="List personal records")
def personal_records(user: dict = Depends(get_current_user)):
    return list_personal_records(user["id"])


@router.get("/personal-records/{exercise_id}", response_model=PersonalRecord, summary="Personal record for an exercise")
def personal_record(exercise_id: str, user: dict = Depends(get_current_user)):
    record = get_personal_record(user["id"], exercise_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No personal record for this exercise")
    return record


@router.get(
    "/exercises/{exercise_id}/previous",
    response_model=Optional[PreviousSessionData],
    summary="Sets from the last finished session that included the exercise",
)
def previous_session(
    exercise_id: str,
    exclude_session_id: Optional[str] = Query(default=None),
    user: dict = Depends(get_current_user),
):
    return get_previous_session_data(user["id"], exercise_id, exclude_session_id=exclude_session_id)


@router.get("/exercises/{exercise_id}/progress", response_model=ProgressResponse, summary="Progress over time")
def progress(
    exercise_id: str,
    days: int = Query(default=90, ge=1, le=3650),
    user: dict = Depends(get_current_user),
):
    if get_exercise(exercise_id) is None:
        raise HTTPException(status_code=404, detail="Exercise not found")
    points = progress_data(user["id"], exercise_id, days=days)
    best = max((p.value for p in points), default=None)
    return ProgressResponse(exercise_id=exercise_id, days=days, points=points, best_value=best)


@router.get("/volume/weekly", response_model=WeeklyVolumeResponse, summary="Sets per muscle group over the last 7 days")
def weekly(user: dict = Depends(get_current_user)):
    since, volume = weekly_volume(user["id"])
    return WeeklyVolumeResponse(since=since, sets_by_muscle_group=volume, total_sets=sum(volume.values()))

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from ..db import session_dependency
from ..models import (
    ActivityLevel,
    BiologicalSex,
    IntensityTechnique,
    MuscleGroup,
    ThemeOption,
    UserProfile,
    WeightUnit,
)
from ..settings import get_settings
from . import analytics, body, catalog, workouts
from .workouts import SuperSetItem

router = APIRouter()


class EndWorkoutRequest(BaseModel):
    notes: Optional[str] = None


class LogSetRequest(BaseModel):
    lift_id: int
    weight: float
    reps: int
    is_warm_up: bool = False
    to_failure: bool = False
    intensity_technique: Optional[IntensityTechnique] = None


class SuperSetRequest(BaseModel):
    items: List[SuperSetItem]


class CreateLiftRequest(BaseModel):
    name: str
    muscle_group: MuscleGroup


class RenameLiftRequest(BaseModel):
    name: str


class SaveSplitRequest(BaseModel):
    workout_id: int
    name: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    age: Optional[int] = None
    biological_sex: Optional[BiologicalSex] = None
    height: Optional[float] = None
    body_weight: Optional[float] = None
    waist: Optional[float] = None
    preferred_unit: Optional[WeightUnit] = None
    preferred_theme: Optional[ThemeOption] = None
    use_scroll_wheel_input: Optional[bool] = None
    default_rest_timer_seconds: Optional[int] = None
    activity_level: Optional[ActivityLevel] = None
    start_date: Optional[datetime] = None


class LogWeightRequest(BaseModel):
    weight: float


def _workout_payload(entry: analytics.WorkoutEntry) -> Dict[str, Any]:
    return {
        "workout": entry,
        "summary": analytics.workout_summary(entry),
        "lifts": [
            {"name": name, "sets": sets} for name, sets in analytics.sets_grouped_by_lift(entry)
        ],
    }


def _profile_payload(profile: UserProfile) -> Dict[str, Any]:
    data = profile.model_dump(exclude={"profile_photo"})
    data["has_photo"] = profile.profile_photo is not None
    return data


@router.post("/workouts/start")
async def start_workout(session: AsyncSession = Depends(session_dependency)) -> Dict[str, Any]:
    workout = await workouts.start_workout(session)
    return {"workout": workout}


@router.post("/workouts/end")
async def end_workout(
    payload: EndWorkoutRequest, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    workout = await workouts.end_workout(session, notes=payload.notes)
    return _workout_payload(await workouts.get_workout(session, workout.id))


@router.get("/workouts/active")
async def active_workout(session: AsyncSession = Depends(session_dependency)) -> Dict[str, Any]:
    workout = await workouts.active_workout(session)
    if workout is None:
        return {"workout": None}
    return _workout_payload(await workouts.get_workout(session, workout.id))


@router.get("/workouts")
async def list_workouts(
    month: Optional[date] = None, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    """Completed workout history, newest first."""
    rows = await workouts.list_workouts(session, month=month)
    entries = {e.id: e for e in await workouts.load_snapshot(session, include_active=False)}
    items = []
    for w in rows:
        entry = entries[w.id]
        items.append({"workout": w, "summary": analytics.workout_summary(entry)})
    return {"workouts": items}


@router.get("/workouts/{workout_id}")
async def get_workout(
    workout_id: int, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    return _workout_payload(await workouts.get_workout(session, workout_id))


@router.get("/workouts/{workout_id}/summary")
async def workout_summary_text(
    workout_id: int, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    entry = await workouts.get_workout(session, workout_id)
    profile = body.profile_entry(await body.get_or_create_profile(session))
    return {
        "text": analytics.summary_text(entry),
        "calories": analytics.workout_calories(profile, entry, met=get_settings().workout_met),
    }


@router.post("/sets")
async def log_set(
    payload: LogSetRequest, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    new_set, pr = await workouts.log_set(
        session,
        payload.lift_id,
        payload.weight,
        payload.reps,
        is_warm_up=payload.is_warm_up,
        to_failure=payload.to_failure,
        intensity_technique=payload.intensity_technique,
    )
    return {"set": new_set, "new_pr": pr.value if pr else None}


@router.post("/super-sets")
async def log_super_set(
    payload: SuperSetRequest, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    logged = await workouts.log_super_set(session, payload.items)
    return {
        "sets": [s for s, _ in logged],
        "new_prs": [pr.value if pr else None for _, pr in logged],
    }


@router.delete("/sets/{set_id}")
async def delete_set(
    set_id: int, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    await workouts.delete_set(session, set_id)
    return {"deleted": 1}


@router.delete("/super-sets/{group_id}")
async def delete_super_set(
    group_id: str, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    return {"deleted": await workouts.delete_super_set_group(session, group_id)}


@router.get("/lifts")
async def list_lifts(
    q: str = "",
    muscle_group: Optional[MuscleGroup] = None,
    session: AsyncSession = Depends(session_dependency),
) -> Dict[str, Any]:
    """Stored lifts merged with the preloaded catalog, filtered by name."""
    return {"lifts": await catalog.list_lifts(session, query=q, muscle_group=muscle_group)}


@router.get("/lifts/recent")
async def recent_lifts(session: AsyncSession = Depends(session_dependency)) -> Dict[str, Any]:
    limit = get_settings().recent_lift_limit
    return {"lifts": await catalog.recent_lifts(session, limit=limit)}


@router.post("/lifts")
async def create_lift(
    payload: CreateLiftRequest, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    lift = await catalog.create_custom_lift(session, payload.name, payload.muscle_group)
    return {"lift": lift}


@router.patch("/lifts/{lift_id}")
async def rename_lift(
    lift_id: int, payload: RenameLiftRequest, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    return {"lift": await catalog.rename_custom_lift(session, lift_id, payload.name)}


@router.get("/lifts/{lift_id}/previous")
async def previous_performance(
    lift_id: int, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    """Sets from the last completed workout with this lift, for side-by-side comparison."""
    await catalog.get_lift(session, lift_id)
    workout, sets = await workouts.previous_performance(session, lift_id)
    return {"date": workout.started_at if workout else None, "sets": sets}


@router.get("/splits")
async def list_splits(session: AsyncSession = Depends(session_dependency)) -> Dict[str, Any]:
    return {"splits": await catalog.list_splits(session)}


@router.post("/splits")
async def save_split(
    payload: SaveSplitRequest, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    split = await catalog.save_split_from_workout(session, payload.workout_id, payload.name)
    return {"split": split}


@router.post("/splits/{split_id}/load")
async def load_split(
    split_id: int, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    return {"lifts": await catalog.load_split(session, split_id)}


@router.get("/profile")
async def get_profile(session: AsyncSession = Depends(session_dependency)) -> Dict[str, Any]:
    return {"profile": _profile_payload(await body.get_or_create_profile(session))}


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    profile = await body.update_profile(session, payload.model_dump(exclude_unset=True))
    return {"profile": _profile_payload(profile)}


@router.post("/weight")
async def log_weight(
    payload: LogWeightRequest, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    return {"entry": await body.log_weight(session, payload.weight)}


@router.get("/weight")
async def weight_history(
    days: int = Query(default=30, ge=1), session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    return {
        "entries": await body.weight_entries(session, days=days),
        "latest": await body.latest_weight(session),
    }

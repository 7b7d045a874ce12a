from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from ..db import session_dependency
from ..settings import get_settings
from . import analytics
from .body import get_or_create_profile, profile_entry
from .workouts import load_snapshot

router = APIRouter(prefix="/progress")


@router.get("/records")
async def records(session: AsyncSession = Depends(session_dependency)) -> Dict[str, Any]:
    """Personal records for every lift ever performed, grouped by muscle group for display."""
    snapshot = await load_snapshot(session)
    prs = analytics.personal_records(snapshot)
    groups: Dict[str, list] = {}
    for pr in prs:
        groups.setdefault(pr.muscle_group.display_name, []).append(pr.exercise)
    return {"records": prs, "muscle_groups": groups}


@router.get("/weekly-volume")
async def weekly_volume(
    weeks: Optional[int] = Query(default=None, ge=1, le=104),
    session: AsyncSession = Depends(session_dependency),
) -> Dict[str, Any]:
    settings = get_settings()
    snapshot = await load_snapshot(session)
    trend = analytics.weekly_volumes(
        snapshot,
        weeks=weeks or settings.trend_weeks,
        week_start=settings.week_start,
    )
    return {
        "labels": [w.label for w in trend],
        "data": [round(w.total_volume, 1) for w in trend],
        "weeks": trend,
    }


@router.get("/lifts/{exercise}")
async def lift_progression(
    exercise: str, session: AsyncSession = Depends(session_dependency)
) -> Dict[str, Any]:
    """Max weight per workout for one lift, plus its records."""
    snapshot = await load_snapshot(session)
    points = analytics.progression(snapshot, exercise)
    record = next((r for r in analytics.personal_records(snapshot) if r.exercise == exercise), None)
    return {
        "exercise": exercise,
        "workout_count": len(points),
        "points": points,
        "record": record,
    }


@router.get("/stats")
async def stats(session: AsyncSession = Depends(session_dependency)) -> Dict[str, Any]:
    settings = get_settings()
    snapshot = await load_snapshot(session)
    return {
        "total_workouts": analytics.total_completed_workouts(snapshot),
        "workouts_this_week": analytics.workouts_this_week(snapshot, week_start=settings.week_start),
        "average_duration_minutes": analytics.average_duration_minutes(snapshot),
        "total_sets": analytics.total_sets_all_time(snapshot),
    }


@router.get("/calories")
async def calories(session: AsyncSession = Depends(session_dependency)) -> Dict[str, Any]:
    settings = get_settings()
    profile = profile_entry(await get_or_create_profile(session))
    snapshot = await load_snapshot(session)
    return {
        "resting_metabolic_rate": analytics.resting_metabolic_rate(profile),
        "total_daily_energy_expenditure": analytics.total_daily_energy_expenditure(profile),
        "weekly_workout_calories": analytics.weekly_workout_calories(
            profile, snapshot, met=settings.workout_met, week_start=settings.week_start
        ),
    }

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import NotFoundError, SetValidationError, WorkoutStateError
from ..models import IntensityTechnique, LiftDefinition, Workout, WorkoutSet
from . import analytics
from .analytics import PRType, SetEntry, WorkoutEntry
from .catalog import get_lift

logger = logging.getLogger(__name__)

MAX_SUPER_SET_LIFTS = 5


class SuperSetItem(BaseModel):
    lift_id: int
    weight: float
    reps: int


async def active_workout(session: AsyncSession) -> Optional[Workout]:
    result = await session.exec(select(Workout).where(Workout.is_active == True))  # noqa: E712
    return result.first()


async def require_active_workout(session: AsyncSession) -> Workout:
    workout = await active_workout(session)
    if workout is None:
        raise WorkoutStateError("no active workout")
    return workout


async def start_workout(session: AsyncSession, now: Optional[datetime] = None) -> Workout:
    """Start a new workout. Only one workout may be active at a time."""
    if await active_workout(session) is not None:
        raise WorkoutStateError("a workout is already active")
    workout = Workout(started_at=now or datetime.now(), is_active=True)
    session.add(workout)
    await session.commit()
    await session.refresh(workout)
    logger.info("workouts: started workout %s", workout.id)
    return workout


async def end_workout(
    session: AsyncSession,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Workout:
    """Finalize the active workout. Finished workouts are never reactivated."""
    workout = await require_active_workout(session)
    workout.is_active = False
    workout.ended_at = now or datetime.now()
    workout.notes = notes.strip() if notes and notes.strip() else None
    session.add(workout)
    await session.commit()
    await session.refresh(workout)
    logger.info("workouts: ended workout %s", workout.id)
    return workout


def renumber_sets(sets: Sequence[WorkoutSet]) -> List[WorkoutSet]:
    """Renumber sets of one lift contiguously from 1 in the order they were logged."""
    ordered = sorted(sets, key=lambda s: (s.timestamp, s.id or 0))
    for index, s in enumerate(ordered):
        s.set_number = index + 1
    return ordered


async def _lift_sets(session: AsyncSession, workout_id: int, lift_id: int) -> List[WorkoutSet]:
    result = await session.exec(
        select(WorkoutSet)
        .where(WorkoutSet.workout_id == workout_id)
        .where(WorkoutSet.lift_id == lift_id)
        .order_by(WorkoutSet.set_number)
    )
    return list(result.all())


def _validate(weight: float, reps: int) -> None:
    if weight <= 0:
        raise SetValidationError("weight must be greater than zero")
    if reps <= 0:
        raise SetValidationError("reps must be greater than zero")


async def _check_pr(
    session: AsyncSession,
    lift: LiftDefinition,
    weight: float,
    reps: int,
    session_volume: float,
) -> Optional[PRType]:
    history = await load_snapshot(session, include_active=False, lift_id=lift.id)
    pr = analytics.detect_new_pr(history, lift.name, weight, reps, session_volume)
    if pr is not None:
        logger.info("workouts: new %s on %s", pr.value, lift.name)
    return pr


async def log_set(
    session: AsyncSession,
    lift_id: int,
    weight: float,
    reps: int,
    is_warm_up: bool = False,
    to_failure: bool = False,
    intensity_technique: Optional[IntensityTechnique] = None,
    now: Optional[datetime] = None,
) -> Tuple[WorkoutSet, Optional[PRType]]:
    """
    Log a set for a lift in the active workout.

    The set number is the next one for that lift in this workout. Returns
    the new set and the personal record it beats, if any; warm-ups are
    never checked.
    """
    _validate(weight, reps)
    workout = await require_active_workout(session)
    lift = await get_lift(session, lift_id)
    now = now or datetime.now()

    existing = await _lift_sets(session, workout.id, lift.id)
    pr = None
    if not is_warm_up:
        running = sum(s.weight * s.reps for s in existing) + weight * reps
        pr = await _check_pr(session, lift, weight, reps, running)

    new_set = WorkoutSet(
        workout_id=workout.id,
        lift_id=lift.id,
        weight=weight,
        reps=reps,
        set_number=len(existing) + 1,
        timestamp=now,
        is_warm_up=is_warm_up,
        to_failure=to_failure,
        intensity_technique=intensity_technique,
    )
    session.add(new_set)
    lift.last_used_at = now
    session.add(lift)
    await session.commit()
    await session.refresh(new_set)
    return new_set, pr


async def log_super_set(
    session: AsyncSession,
    items: Sequence[SuperSetItem],
    now: Optional[datetime] = None,
) -> List[Tuple[WorkoutSet, Optional[PRType]]]:
    """Log several lifts as one grouped set sharing a group id."""
    if not items:
        raise SetValidationError("a super set needs at least one lift")
    if len(items) > MAX_SUPER_SET_LIFTS:
        raise SetValidationError(f"a super set holds at most {MAX_SUPER_SET_LIFTS} lifts")
    if len({item.lift_id for item in items}) != len(items):
        raise SetValidationError("a lift can only appear once in a super set")

    # Single lift is just a regular set
    if len(items) == 1:
        item = items[0]
        return [await log_set(session, item.lift_id, item.weight, item.reps, now=now)]

    for item in items:
        _validate(item.weight, item.reps)
    workout = await require_active_workout(session)
    lifts = [await get_lift(session, item.lift_id) for item in items]
    now = now or datetime.now()
    group_id = str(uuid.uuid4())

    logged: List[Tuple[WorkoutSet, Optional[PRType]]] = []
    for order, (item, lift) in enumerate(zip(items, lifts)):
        existing = await _lift_sets(session, workout.id, lift.id)
        running = sum(s.weight * s.reps for s in existing) + item.weight * item.reps
        pr = await _check_pr(session, lift, item.weight, item.reps, running)
        new_set = WorkoutSet(
            workout_id=workout.id,
            lift_id=lift.id,
            weight=item.weight,
            reps=item.reps,
            set_number=len(existing) + 1,
            timestamp=now,
            super_set_group_id=group_id,
            super_set_order=order,
        )
        session.add(new_set)
        lift.last_used_at = now
        session.add(lift)
        logged.append((new_set, pr))

    await session.commit()
    for new_set, _ in logged:
        await session.refresh(new_set)
    logger.info("workouts: logged super set %s with %d lifts", group_id, len(logged))
    return logged


async def delete_set(session: AsyncSession, set_id: int) -> None:
    """Delete a set from the active workout and renumber the rest of that lift."""
    target = await session.get(WorkoutSet, set_id)
    if target is None:
        raise NotFoundError(f"set {set_id} not found")
    workout = await require_active_workout(session)
    if target.workout_id != workout.id:
        raise WorkoutStateError("sets can only be deleted from the active workout")

    remaining = [s for s in await _lift_sets(session, workout.id, target.lift_id) if s.id != target.id]
    await session.delete(target)
    for s in renumber_sets(remaining):
        session.add(s)
    await session.commit()


async def delete_super_set_group(session: AsyncSession, group_id: str) -> int:
    """Delete every set of a super set group and renumber each affected lift."""
    workout = await require_active_workout(session)
    result = await session.exec(
        select(WorkoutSet)
        .where(WorkoutSet.workout_id == workout.id)
        .where(WorkoutSet.super_set_group_id == group_id)
    )
    group_sets = list(result.all())
    if not group_sets:
        raise NotFoundError(f"super set {group_id} not found")

    lift_ids = {s.lift_id for s in group_sets}
    for s in group_sets:
        await session.delete(s)
    for lift_id in lift_ids:
        remaining = [
            s for s in await _lift_sets(session, workout.id, lift_id)
            if s.super_set_group_id != group_id
        ]
        for s in renumber_sets(remaining):
            session.add(s)
    await session.commit()
    return len(group_sets)


async def previous_performance(
    session: AsyncSession, lift_id: int
) -> Tuple[Optional[Workout], List[WorkoutSet]]:
    """
    Sets from the latest completed workout that included this lift.

    Two workouts starting at the same instant resolve to the one stored
    last (higher id).
    """
    result = await session.exec(
        select(Workout)
        .where(Workout.is_active == False)  # noqa: E712
        .where(Workout.id.in_(select(WorkoutSet.workout_id).where(WorkoutSet.lift_id == lift_id)))
        .order_by(Workout.started_at.desc(), Workout.id.desc())
        .limit(1)
    )
    workout = result.first()
    if workout is None:
        return None, []
    return workout, await _lift_sets(session, workout.id, lift_id)


def _to_entry(workout: Workout, rows: Sequence[Tuple[WorkoutSet, LiftDefinition]]) -> WorkoutEntry:
    return WorkoutEntry(
        id=workout.id,
        started_at=workout.started_at,
        ended_at=workout.ended_at,
        is_active=workout.is_active,
        notes=workout.notes,
        sets=[
            SetEntry(
                exercise=lift.name,
                muscle_group=lift.muscle_group,
                weight=s.weight,
                reps=s.reps,
                set_number=s.set_number,
                timestamp=s.timestamp,
                is_warm_up=s.is_warm_up,
                to_failure=s.to_failure,
                intensity_technique=s.intensity_technique,
            )
            for s, lift in rows
        ],
    )


async def load_snapshot(
    session: AsyncSession,
    include_active: bool = True,
    lift_id: Optional[int] = None,
) -> List[WorkoutEntry]:
    """Read workouts and their sets into analytics entries, oldest first."""
    query = select(Workout).order_by(Workout.started_at, Workout.id)
    if not include_active:
        query = query.where(Workout.is_active == False)  # noqa: E712
    workouts = (await session.exec(query)).all()

    set_query = (
        select(WorkoutSet, LiftDefinition)
        .where(WorkoutSet.lift_id == LiftDefinition.id)
        .order_by(WorkoutSet.timestamp, WorkoutSet.id)
    )
    if lift_id is not None:
        set_query = set_query.where(WorkoutSet.lift_id == lift_id)
    rows_by_workout: Dict[int, List[Tuple[WorkoutSet, LiftDefinition]]] = {}
    for s, lift in (await session.exec(set_query)).all():
        rows_by_workout.setdefault(s.workout_id, []).append((s, lift))

    return [_to_entry(w, rows_by_workout.get(w.id, [])) for w in workouts]


async def get_workout(session: AsyncSession, workout_id: int) -> WorkoutEntry:
    workout = await session.get(Workout, workout_id)
    if workout is None:
        raise NotFoundError(f"workout {workout_id} not found")
    result = await session.exec(
        select(WorkoutSet, LiftDefinition)
        .where(WorkoutSet.workout_id == workout_id)
        .where(WorkoutSet.lift_id == LiftDefinition.id)
        .order_by(WorkoutSet.timestamp, WorkoutSet.id)
    )
    return _to_entry(workout, result.all())


async def list_workouts(session: AsyncSession, month: Optional[date] = None) -> List[Workout]:
    """Completed workouts, newest first, optionally limited to one calendar month."""
    query = select(Workout).where(Workout.is_active == False)  # noqa: E712
    if month is not None:
        first = datetime(month.year, month.month, 1)
        if month.month == 12:
            after = datetime(month.year + 1, 1, 1)
        else:
            after = datetime(month.year, month.month + 1, 1)
        query = query.where(Workout.started_at >= first).where(Workout.started_at < after)
    result = await session.exec(query.order_by(Workout.started_at.desc(), Workout.id.desc()))
    return list(result.all())

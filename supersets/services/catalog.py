from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import CatalogError, NotFoundError
from ..models import LiftDefinition, MuscleGroup, Workout, WorkoutSet, WorkoutSplit

logger = logging.getLogger(__name__)


PRELOADED_LIFTS: Dict[MuscleGroup, List[str]] = {
    MuscleGroup.chest: [
        "Flat Barbell Bench Press", "Incline Barbell Bench Press", "Decline Barbell Bench Press",
        "Flat Dumbbell Press", "Incline Dumbbell Press", "Dumbbell Flyes", "Cable Crossover",
        "Pec Deck Machine", "Push-ups", "Chest Dips", "Machine Chest Press", "Incline Cable Flye",
    ],
    MuscleGroup.lats: [
        "Pull-ups", "Chin-ups", "Lat Pulldown", "Barbell Bent-Over Row", "Dumbbell Single-Arm Row",
        "Seated Cable Row", "T-Bar Row", "Straight-Arm Pulldown", "Machine Row",
        "Close-Grip Lat Pulldown", "Meadows Row",
    ],
    MuscleGroup.lower_back: [
        "Deadlift", "Romanian Deadlift", "Good Mornings", "Back Extension", "Hyperextension",
        "Reverse Hyperextension", "Superman Hold",
    ],
    MuscleGroup.traps: [
        "Barbell Shrugs", "Dumbbell Shrugs", "Face Pulls", "Upright Row", "Farmer's Walk",
        "Rack Pulls",
    ],
    MuscleGroup.neck: [
        "Neck Curl", "Neck Extension", "Neck Lateral Flexion", "Neck Harness", "Plate Neck Flexion",
    ],
    MuscleGroup.shoulders: [
        "Overhead Press (Barbell)", "Overhead Press (Dumbbell)", "Arnold Press", "Lateral Raises",
        "Front Raises", "Reverse Flyes", "Cable Lateral Raise", "Machine Shoulder Press",
        "Upright Cable Row", "Machine Lateral Raise", "Rear Delt Machine",
    ],
    MuscleGroup.abs: [
        "Crunches", "Hanging Leg Raises", "Cable Crunches", "Ab Wheel Rollout", "Plank",
        "Russian Twist", "Decline Sit-ups", "Leg Raises",
    ],
    MuscleGroup.quads: [
        "Barbell Back Squat", "Front Squat", "Leg Press", "Leg Extension", "Hack Squat",
        "Bulgarian Split Squat", "Goblet Squat", "Walking Lunges", "Sissy Squat",
        "Pendulum Squat", "Belt Squat",
    ],
    MuscleGroup.leg_biceps: [
        "Lying Leg Curl", "Seated Leg Curl", "Standing Leg Curl", "Stiff-Leg Deadlift",
        "Nordic Hamstring Curl", "Glute-Ham Raise", "Cable Leg Curl", "Single-Leg Lying Curl",
    ],
    MuscleGroup.glutes: [
        "Hip Thrust (Barbell)", "Hip Thrust (Machine)", "Cable Kickback", "Glute Bridge",
        "Step-ups", "Sumo Deadlift", "Cable Pull-Through",
    ],
    MuscleGroup.calves: [
        "Standing Calf Raise", "Seated Calf Raise", "Leg Press Calf Raise", "Donkey Calf Raise",
        "Smith Machine Calf Raise", "Single-Leg Calf Raise",
    ],
    MuscleGroup.biceps: [
        "Barbell Curl", "Dumbbell Curl", "Hammer Curl", "Preacher Curl", "Concentration Curl",
        "Cable Curl", "Incline Dumbbell Curl", "EZ-Bar Curl", "Spider Curl", "Machine Curl",
        "Bayesian Curl",
    ],
    MuscleGroup.triceps: [
        "Close-Grip Bench Press", "Skull Crushers", "Tricep Pushdown", "Overhead Tricep Extension",
        "Dumbbell Kickback", "Dips (Tricep)", "Cable Overhead Extension", "Diamond Push-ups",
        "Machine Tricep Extension", "JM Press",
    ],
}

PRESET_SPLITS: List[tuple[str, List[str]]] = [
    ("Push Day", [
        "Flat Barbell Bench Press", "Incline Dumbbell Press", "Cable Crossover",
        "Overhead Press (Barbell)", "Lateral Raises", "Tricep Pushdown",
    ]),
    ("Pull Day", [
        "Barbell Bent-Over Row", "Lat Pulldown", "Seated Cable Row",
        "Face Pulls", "Barbell Curl", "Hammer Curl",
    ]),
    ("Leg Day", [
        "Barbell Back Squat", "Romanian Deadlift", "Leg Press",
        "Lying Leg Curl", "Leg Extension", "Standing Calf Raise",
    ]),
    ("Upper Body", [
        "Flat Barbell Bench Press", "Barbell Bent-Over Row", "Overhead Press (Barbell)",
        "Lat Pulldown", "Barbell Curl", "Tricep Pushdown",
    ]),
    ("Lower Body", [
        "Barbell Back Squat", "Romanian Deadlift", "Leg Press",
        "Lying Leg Curl", "Standing Calf Raise", "Hip Thrust (Barbell)",
    ]),
]


def catalog_count() -> int:
    return sum(len(names) for names in PRELOADED_LIFTS.values())


def catalog_group(name: str) -> Optional[MuscleGroup]:
    for group, names in PRELOADED_LIFTS.items():
        if name in names:
            return group
    return None


async def seed_catalog_if_needed(session: AsyncSession) -> int:
    """Store every catalog lift that is not in the lift table yet."""
    existing = await session.exec(select(LiftDefinition.name))
    stored = set(existing.all())

    inserted = 0
    for group, names in PRELOADED_LIFTS.items():
        for name in names:
            if name in stored:
                continue
            session.add(LiftDefinition(name=name, muscle_group=group, is_custom=False))
            inserted += 1
    if inserted:
        await session.commit()
        logger.info("catalog: seeded %d lifts", inserted)
    return inserted


def merge_lifts(
    stored: Sequence[LiftDefinition],
    muscle_group: Optional[MuscleGroup] = None,
) -> List[LiftDefinition]:
    """
    Stored lifts plus any catalog entries not stored yet, sorted by name.

    Stored rows win over catalog names so custom lifts and usage dates are
    kept. Catalog-only entries are unsaved ``LiftDefinition`` objects.
    """
    result: List[LiftDefinition] = []
    seen: set[str] = set()

    for lift in stored:
        if muscle_group is not None and lift.muscle_group != muscle_group:
            continue
        if lift.name not in seen:
            seen.add(lift.name)
            result.append(lift)

    groups = [muscle_group] if muscle_group is not None else list(MuscleGroup)
    for group in groups:
        for name in PRELOADED_LIFTS.get(group, []):
            if name not in seen:
                seen.add(name)
                result.append(LiftDefinition(name=name, muscle_group=group, is_custom=False))

    result.sort(key=lambda lift: lift.name)
    return result


def search_lifts(lifts: Sequence[LiftDefinition], query: str) -> List[LiftDefinition]:
    needle = query.strip().lower()
    if not needle:
        return list(lifts)
    return [lift for lift in lifts if needle in lift.name.lower()]


async def list_lifts(
    session: AsyncSession,
    query: str = "",
    muscle_group: Optional[MuscleGroup] = None,
) -> List[LiftDefinition]:
    result = await session.exec(select(LiftDefinition))
    return search_lifts(merge_lifts(result.all(), muscle_group), query)


async def get_lift(session: AsyncSession, lift_id: int) -> LiftDefinition:
    lift = await session.get(LiftDefinition, lift_id)
    if lift is None:
        raise NotFoundError(f"lift {lift_id} not found")
    return lift


async def get_or_create_lift(session: AsyncSession, name: str) -> Optional[LiftDefinition]:
    """Stored lift by name, inserting catalog-only lifts on demand."""
    result = await session.exec(select(LiftDefinition).where(LiftDefinition.name == name))
    lift = result.first()
    if lift is not None:
        return lift
    group = catalog_group(name)
    if group is None:
        return None
    lift = LiftDefinition(name=name, muscle_group=group, is_custom=False)
    session.add(lift)
    await session.flush()
    return lift


async def _ensure_unique_name(session: AsyncSession, name: str) -> str:
    name = name.strip()
    if not name:
        raise CatalogError("lift name must not be blank")
    result = await session.exec(select(LiftDefinition).where(LiftDefinition.name == name))
    if result.first() is not None or catalog_group(name) is not None:
        raise CatalogError(f"lift {name!r} already exists")
    return name


async def create_custom_lift(
    session: AsyncSession, name: str, muscle_group: MuscleGroup
) -> LiftDefinition:
    name = await _ensure_unique_name(session, name)
    lift = LiftDefinition(name=name, muscle_group=muscle_group, is_custom=True)
    session.add(lift)
    await session.commit()
    await session.refresh(lift)
    logger.info("catalog: created custom lift %s (%s)", lift.name, muscle_group.value)
    return lift


async def rename_custom_lift(session: AsyncSession, lift_id: int, name: str) -> LiftDefinition:
    lift = await get_lift(session, lift_id)
    if not lift.is_custom:
        raise CatalogError("only custom lifts can be renamed")
    if name.strip() == lift.name:
        return lift
    lift.name = await _ensure_unique_name(session, name)
    session.add(lift)
    await session.commit()
    await session.refresh(lift)
    return lift


async def recent_lifts(session: AsyncSession, limit: int = 10) -> List[LiftDefinition]:
    """Most recently used lifts, newest first."""
    result = await session.exec(
        select(LiftDefinition)
        .where(LiftDefinition.last_used_at.is_not(None))
        .order_by(LiftDefinition.last_used_at.desc())
        .limit(limit)
    )
    return list(result.all())


async def seed_splits_if_needed(session: AsyncSession) -> int:
    existing = await session.exec(select(WorkoutSplit))
    if existing.first() is not None:
        return 0
    for name, lifts in PRESET_SPLITS:
        session.add(WorkoutSplit(name=name, lift_names=list(lifts), is_preset=True))
    await session.commit()
    logger.info("catalog: seeded %d preset splits", len(PRESET_SPLITS))
    return len(PRESET_SPLITS)


async def list_splits(session: AsyncSession) -> List[WorkoutSplit]:
    result = await session.exec(select(WorkoutSplit).order_by(WorkoutSplit.created_at))
    return list(result.all())


async def save_split_from_workout(
    session: AsyncSession, workout_id: int, name: str
) -> WorkoutSplit:
    """Save a workout's lifts, in the order first performed, as a split template."""
    workout = await session.get(Workout, workout_id)
    if workout is None:
        raise NotFoundError(f"workout {workout_id} not found")
    if not name.strip():
        raise CatalogError("split name must not be blank")

    result = await session.exec(
        select(WorkoutSet, LiftDefinition)
        .where(WorkoutSet.workout_id == workout_id)
        .where(WorkoutSet.lift_id == LiftDefinition.id)
        .order_by(WorkoutSet.timestamp, WorkoutSet.id)
    )
    lift_names: List[str] = []
    for _, lift in result.all():
        if lift.name not in lift_names:
            lift_names.append(lift.name)
    if not lift_names:
        raise CatalogError("workout has no sets to save as a split")

    split = WorkoutSplit(name=name.strip(), lift_names=lift_names, created_at=datetime.now())
    session.add(split)
    await session.commit()
    await session.refresh(split)
    return split


async def load_split(session: AsyncSession, split_id: int) -> List[LiftDefinition]:
    """Lifts of a split, in template order; catalog-only names are stored on demand."""
    split = await session.get(WorkoutSplit, split_id)
    if split is None:
        raise NotFoundError(f"split {split_id} not found")
    lifts: List[LiftDefinition] = []
    for name in split.lift_names:
        lift = await get_or_create_lift(session, name)
        if lift is None:
            logger.warning("catalog: split %s references unknown lift %s", split.name, name)
            continue
        lifts.append(lift)
    await session.commit()
    return lifts

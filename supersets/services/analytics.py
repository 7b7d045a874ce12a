"""
Progress analytics over a snapshot of workouts.

Everything here is a pure function of its arguments: callers load a fresh
snapshot (see workouts.load_snapshot) and recompute after every change.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from ..models import ActivityLevel, BiologicalSex, IntensityTechnique, MuscleGroup, WeightUnit
from .units import to_cm, to_kg

MONDAY = 0
DEFAULT_WEEKS = 8
RESISTANCE_TRAINING_MET = 5.5

# Brzycki stops being meaningful at 37 reps (denominator hits zero)
BRZYCKI_REP_LIMIT = 37


class SetEntry(BaseModel):
    exercise: str
    muscle_group: MuscleGroup
    weight: float
    reps: int
    set_number: int
    timestamp: datetime
    is_warm_up: bool = False
    to_failure: bool = False
    intensity_technique: Optional[IntensityTechnique] = None


class WorkoutEntry(BaseModel):
    id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    is_active: bool = False
    notes: Optional[str] = None
    sets: List[SetEntry] = []


class ProfileEntry(BaseModel):
    age: int
    biological_sex: BiologicalSex
    height: float
    body_weight: float
    preferred_unit: WeightUnit
    activity_level: ActivityLevel


class PersonalRecord(BaseModel):
    exercise: str
    muscle_group: MuscleGroup
    heaviest_weight: float = 0
    heaviest_weight_date: Optional[datetime] = None
    best_volume: float = 0
    best_volume_date: Optional[datetime] = None
    most_reps: int = 0
    most_reps_date: Optional[datetime] = None
    estimated_1rm: float = 0
    estimated_1rm_date: Optional[datetime] = None


class PRType(str, Enum):
    heaviest_weight = "Heaviest Set"
    best_volume = "Best Volume"
    most_reps = "Most Reps"
    estimated_1rm = "Est. 1RM"


class WeeklyVolume(BaseModel):
    week_start: datetime
    label: str
    total_volume: float


class ProgressionPoint(BaseModel):
    date: datetime
    max_weight: float


class WorkoutSummary(BaseModel):
    duration_minutes: int
    exercise_count: int
    set_count: int
    total_volume: float


def estimated_one_rep_max(weight: float, reps: int) -> float:
    """Brzycki estimate; falls back to the raw weight outside 2..36 reps."""
    if reps <= 1 or reps >= BRZYCKI_REP_LIMIT:
        return weight
    return weight * 36.0 / (BRZYCKI_REP_LIMIT - reps)


def set_volume(s: SetEntry) -> float:
    return s.weight * s.reps


def completed(workouts: Sequence[WorkoutEntry]) -> List[WorkoutEntry]:
    """Completed workouts in chronological order (ties broken by id)."""
    done = [w for w in workouts if not w.is_active]
    done.sort(key=lambda w: (w.started_at, w.id))
    return done


def start_of_week(moment: datetime, week_start: int = MONDAY) -> datetime:
    day = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=(day.weekday() - week_start) % 7)


def week_label(week_start: datetime) -> str:
    # "Jan 6"
    return f"{week_start:%b} {week_start.day}"


def personal_records(workouts: Sequence[WorkoutEntry]) -> List[PersonalRecord]:
    """
    One record per exercise that has at least one set in a completed workout.

    Heaviest weight, most reps and estimated 1RM keep the earliest set on
    ties. Best volume is the largest weight x reps total of a single
    workout's sets for that exercise, dated with the workout.
    """
    records: Dict[str, PersonalRecord] = {}
    # (workout, exercise) -> summed volume, in workout order
    volume_groups: Dict[Tuple[int, str], float] = {}
    workout_dates: Dict[int, datetime] = {}

    pairs: List[Tuple[WorkoutEntry, SetEntry]] = []
    for w in completed(workouts):
        workout_dates[w.id] = w.started_at
        for s in w.sets:
            pairs.append((w, s))
            key = (w.id, s.exercise)
            volume_groups[key] = volume_groups.get(key, 0.0) + set_volume(s)

    # Stable sort keeps workout order for identical timestamps
    pairs.sort(key=lambda p: p[1].timestamp)

    for _, s in pairs:
        pr = records.get(s.exercise)
        if pr is None:
            pr = PersonalRecord(exercise=s.exercise, muscle_group=s.muscle_group)
            records[s.exercise] = pr

        if pr.heaviest_weight_date is None or s.weight > pr.heaviest_weight:
            pr.heaviest_weight = s.weight
            pr.heaviest_weight_date = s.timestamp

        if pr.most_reps_date is None or s.reps > pr.most_reps:
            pr.most_reps = s.reps
            pr.most_reps_date = s.timestamp

        one_rm = estimated_one_rep_max(s.weight, s.reps)
        if pr.estimated_1rm_date is None or one_rm > pr.estimated_1rm:
            pr.estimated_1rm = one_rm
            pr.estimated_1rm_date = s.timestamp

    for (workout_id, exercise), volume in volume_groups.items():
        pr = records[exercise]
        if pr.best_volume_date is None or volume > pr.best_volume:
            pr.best_volume = volume
            pr.best_volume_date = workout_dates[workout_id]

    return sorted(records.values(), key=lambda r: r.exercise)


def detect_new_pr(
    workouts: Sequence[WorkoutEntry],
    exercise: str,
    weight: float,
    reps: int,
    session_volume: Optional[float] = None,
) -> Optional[PRType]:
    """
    Which record a freshly logged working set beats, if any.

    Compared against completed workouts only; the first time a lift is
    performed there is nothing to beat. ``session_volume`` is the running
    weight x reps total for this lift in the active workout, new set
    included (defaults to the set alone). Checked in order of
    impressiveness: 1RM, weight, volume, reps.
    """
    history = [r for r in personal_records(workouts) if r.exercise == exercise]
    if not history:
        return None
    pr = history[0]

    if session_volume is None:
        session_volume = weight * reps

    if estimated_one_rep_max(weight, reps) > pr.estimated_1rm:
        return PRType.estimated_1rm
    if weight > pr.heaviest_weight:
        return PRType.heaviest_weight
    if session_volume > pr.best_volume:
        return PRType.best_volume
    if reps > pr.most_reps:
        return PRType.most_reps
    return None


def weekly_volumes(
    workouts: Sequence[WorkoutEntry],
    weeks: int = DEFAULT_WEEKS,
    week_start: int = MONDAY,
    now: Optional[datetime] = None,
) -> List[WeeklyVolume]:
    """
    Total volume per calendar week for the trailing ``weeks`` weeks.

    Always returns exactly ``weeks`` entries, oldest first, ending with the
    current week. Weeks without workouts are zero.
    """
    if weeks <= 0:
        return []
    now = now or datetime.now()
    current = start_of_week(now, week_start)

    # Initialize week buckets
    buckets: Dict[datetime, float] = {}
    for i in range(weeks):
        buckets[current - timedelta(weeks=weeks - 1 - i)] = 0.0

    for w in completed(workouts):
        key = start_of_week(w.started_at, week_start)
        if key not in buckets:
            continue
        buckets[key] += sum(set_volume(s) for s in w.sets)

    return [
        WeeklyVolume(week_start=ws, label=week_label(ws), total_volume=total)
        for ws, total in buckets.items()
    ]


def progression(workouts: Sequence[WorkoutEntry], exercise: str) -> List[ProgressionPoint]:
    """One point per completed workout that included ``exercise``: its heaviest set."""
    points: List[ProgressionPoint] = []
    for w in completed(workouts):
        weights = [s.weight for s in w.sets if s.exercise == exercise]
        if weights:
            points.append(ProgressionPoint(date=w.started_at, max_weight=max(weights)))
    return points


def total_completed_workouts(workouts: Sequence[WorkoutEntry]) -> int:
    return sum(1 for w in workouts if not w.is_active)


def completed_this_week(
    workouts: Sequence[WorkoutEntry],
    week_start: int = MONDAY,
    now: Optional[datetime] = None,
) -> List[WorkoutEntry]:
    now = now or datetime.now()
    begin = start_of_week(now, week_start)
    end = begin + timedelta(weeks=1)
    return [w for w in completed(workouts) if begin <= w.started_at < end]


def workouts_this_week(
    workouts: Sequence[WorkoutEntry],
    week_start: int = MONDAY,
    now: Optional[datetime] = None,
) -> int:
    return len(completed_this_week(workouts, week_start, now))


def duration_seconds(workout: WorkoutEntry) -> Optional[float]:
    if workout.ended_at is None:
        return None
    return (workout.ended_at - workout.started_at).total_seconds()


def average_duration_minutes(workouts: Sequence[WorkoutEntry]) -> int:
    """Mean duration of completed workouts that have an end time, in whole minutes."""
    durations = [d for d in (duration_seconds(w) for w in completed(workouts)) if d is not None]
    if not durations:
        return 0
    return int(round(sum(durations) / len(durations) / 60.0))


def total_sets_all_time(workouts: Sequence[WorkoutEntry]) -> int:
    # Includes the active workout
    return sum(len(w.sets) for w in workouts)


def resting_metabolic_rate(profile: ProfileEntry) -> int:
    """Mifflin-St Jeor, computed in kilograms and centimeters."""
    weight_kg = to_kg(profile.body_weight, profile.preferred_unit)
    height_cm = to_cm(profile.height, profile.preferred_unit)
    base = 10.0 * weight_kg + 6.25 * height_cm - 5.0 * profile.age
    if profile.biological_sex == BiologicalSex.male:
        return int(base + 5.0)
    return int(base - 161.0)


def total_daily_energy_expenditure(profile: ProfileEntry) -> int:
    return int(resting_metabolic_rate(profile) * profile.activity_level.multiplier)


def workout_calories(
    profile: ProfileEntry,
    workout: WorkoutEntry,
    met: float = RESISTANCE_TRAINING_MET,
) -> int:
    """MET x body weight (kg) x duration (hours)."""
    seconds = duration_seconds(workout)
    if seconds is None:
        return 0
    weight_kg = to_kg(profile.body_weight, profile.preferred_unit)
    return int(met * weight_kg * seconds / 3600.0)


def weekly_workout_calories(
    profile: ProfileEntry,
    workouts: Sequence[WorkoutEntry],
    met: float = RESISTANCE_TRAINING_MET,
    week_start: int = MONDAY,
    now: Optional[datetime] = None,
) -> int:
    return sum(
        workout_calories(profile, w, met) for w in completed_this_week(workouts, week_start, now)
    )


def sets_grouped_by_lift(workout: WorkoutEntry) -> List[Tuple[str, List[SetEntry]]]:
    """Lifts in the order first performed, each with its sets by set number."""
    groups: Dict[str, List[SetEntry]] = {}
    for s in sorted(workout.sets, key=lambda s: s.timestamp):
        groups.setdefault(s.exercise, []).append(s)
    return [(name, sorted(sets, key=lambda s: s.set_number)) for name, sets in groups.items()]


def workout_summary(workout: WorkoutEntry) -> WorkoutSummary:
    seconds = duration_seconds(workout) or 0.0
    return WorkoutSummary(
        duration_minutes=int(seconds // 60),
        exercise_count=len({s.exercise for s in workout.sets}),
        set_count=len(workout.sets),
        total_volume=sum(set_volume(s) for s in workout.sets),
    )


def format_duration(seconds: float) -> str:
    hours = int(seconds) // 3600
    minutes = (int(seconds) % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_set(s: SetEntry) -> str:
    weight = f"{s.weight:.0f}" if float(s.weight).is_integer() else f"{s.weight:.1f}"
    parts = []
    if s.is_warm_up:
        parts.append("W")
    parts.append(f"{weight} x {s.reps}")
    if s.to_failure:
        parts.append("F")
    if s.intensity_technique is not None:
        parts.append(s.intensity_technique.short_label)
    return " ".join(parts)


def summary_text(workout: WorkoutEntry) -> str:
    """Plain text summary for sharing."""
    summary = workout_summary(workout)
    lines = [
        "Super Sets Workout Summary",
        "-" * 27,
        f"Date: {workout.started_at:%A, %B} {workout.started_at.day}, {workout.started_at:%Y}",
        f"Duration: {format_duration(duration_seconds(workout) or 0.0)}",
        f"{summary.exercise_count} exercises · {summary.set_count} total sets",
    ]
    if workout.notes:
        lines.append(f"Notes: {workout.notes}")
    lines.append("")

    for name, sets in sets_grouped_by_lift(workout):
        lines.append(f"> {name} ({sets[0].muscle_group.display_name})")
        for s in sets:
            lines.append(f"   Set {s.set_number}: {format_set(s)}")
        lines.append("")

    lines.append("-" * 27)
    lines.append("Tracked with Super Sets")
    return "\n".join(lines)

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import SQLModel, Field


class MuscleGroup(str, Enum):
    chest = "chest"
    lats = "lats"
    lower_back = "lower_back"
    traps = "traps"
    neck = "neck"
    shoulders = "shoulders"
    abs = "abs"
    quads = "quads"
    leg_biceps = "leg_biceps"  # hamstrings
    glutes = "glutes"
    calves = "calves"
    biceps = "biceps"
    triceps = "triceps"
    cardio = "cardio"
    stretching = "stretching"

    @property
    def display_name(self) -> str:
        return MUSCLE_GROUP_NAMES[self]


MUSCLE_GROUP_NAMES = {
    MuscleGroup.chest: "Chest",
    MuscleGroup.lats: "Lats",
    MuscleGroup.lower_back: "Lower Back",
    MuscleGroup.traps: "Traps",
    MuscleGroup.neck: "Neck",
    MuscleGroup.shoulders: "Shoulders",
    MuscleGroup.abs: "Abs",
    MuscleGroup.quads: "Quads",
    MuscleGroup.leg_biceps: "Hamstrings",
    MuscleGroup.glutes: "Glutes",
    MuscleGroup.calves: "Calves",
    MuscleGroup.biceps: "Biceps",
    MuscleGroup.triceps: "Triceps",
    MuscleGroup.cardio: "Cardio",
    MuscleGroup.stretching: "Stretching",
}


class WeightUnit(str, Enum):
    lbs = "lbs"
    kg = "kg"


class BiologicalSex(str, Enum):
    male = "Male"
    female = "Female"


class ThemeOption(str, Enum):
    dark = "Dark"
    light = "Light"


class ActivityLevel(str, Enum):
    sedentary = "Sedentary"
    light = "Light"
    moderate = "Moderate"
    active = "Active"
    very_active = "Very Active"

    @property
    def multiplier(self) -> float:
        return ACTIVITY_MULTIPLIERS[self]


ACTIVITY_MULTIPLIERS = {
    ActivityLevel.sedentary: 1.2,
    ActivityLevel.light: 1.375,
    ActivityLevel.moderate: 1.55,
    ActivityLevel.active: 1.725,
    ActivityLevel.very_active: 1.9,
}


class IntensityTechnique(str, Enum):
    drop_set = "Drop Set"
    forced_reps = "Forced Reps"
    rest_pause = "Rest-Pause"
    negatives = "Negatives"
    partial_reps = "Partial Reps"

    @property
    def short_label(self) -> str:
        return {
            IntensityTechnique.drop_set: "DS",
            IntensityTechnique.forced_reps: "FR",
            IntensityTechnique.rest_pause: "RP",
            IntensityTechnique.negatives: "NEG",
            IntensityTechnique.partial_reps: "PR",
        }[self]


# Timestamps are stored as naive local time
NAIVE_DATETIME = DateTime(timezone=False)


class LiftDefinition(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    muscle_group: MuscleGroup
    is_custom: bool = True
    created_at: datetime = Field(default_factory=datetime.now, sa_type=NAIVE_DATETIME)
    last_used_at: Optional[datetime] = Field(default=None, sa_type=NAIVE_DATETIME)


class Workout(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    started_at: datetime = Field(default_factory=datetime.now, sa_type=NAIVE_DATETIME)
    ended_at: Optional[datetime] = Field(default=None, sa_type=NAIVE_DATETIME)
    notes: Optional[str] = None
    is_active: bool = Field(default=True, index=True)


class WorkoutSet(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    workout_id: int = Field(foreign_key="workout.id", index=True)
    lift_id: int = Field(foreign_key="liftdefinition.id", index=True)
    weight: float
    reps: int
    set_number: int
    timestamp: datetime = Field(default_factory=datetime.now, sa_type=NAIVE_DATETIME)
    is_warm_up: bool = False
    to_failure: bool = False
    intensity_technique: Optional[IntensityTechnique] = None
    super_set_group_id: Optional[str] = Field(default=None, index=True)
    super_set_order: Optional[int] = None


class UserProfile(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = ""
    age: int = 25
    biological_sex: BiologicalSex = BiologicalSex.male
    # inches when preferred_unit is lbs, centimeters when kg
    height: float = 70
    body_weight: float = 180
    waist: float = 34
    preferred_unit: WeightUnit = WeightUnit.lbs
    preferred_theme: ThemeOption = ThemeOption.dark
    use_scroll_wheel_input: bool = True
    default_rest_timer_seconds: int = 90
    activity_level: ActivityLevel = ActivityLevel.moderate
    profile_photo: Optional[bytes] = None
    start_date: Optional[datetime] = Field(default_factory=datetime.now, sa_type=NAIVE_DATETIME)


class WeightEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    logged_at: datetime = Field(default_factory=datetime.now, sa_type=NAIVE_DATETIME, index=True)
    weight: float


class WorkoutSplit(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    lift_names: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.now, sa_type=NAIVE_DATETIME)
    is_preset: bool = False

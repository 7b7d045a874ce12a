from datetime import datetime, timedelta

import pytest

from supersets.errors import CatalogError, NotFoundError
from supersets.models import LiftDefinition, MuscleGroup
from supersets.services import catalog, workouts


class TestSeeding:
    async def test_seeds_once(self, session):
        assert await catalog.seed_catalog_if_needed(session) == catalog.catalog_count()
        assert await catalog.seed_catalog_if_needed(session) == 0

    async def test_seeding_fills_in_missing_catalog_lifts(self, session):
        await catalog.create_custom_lift(session, "Landmine Press", MuscleGroup.shoulders)
        await catalog.get_or_create_lift(session, "Deadlift")
        await session.commit()

        assert await catalog.seed_catalog_if_needed(session) == catalog.catalog_count() - 1
        lifts = await catalog.list_lifts(session)
        assert all(lift.id is not None for lift in lifts)
        assert len(lifts) == catalog.catalog_count() + 1

    async def test_splits_seed_once(self, session):
        assert await catalog.seed_splits_if_needed(session) == len(catalog.PRESET_SPLITS)
        assert await catalog.seed_splits_if_needed(session) == 0
        splits = await catalog.list_splits(session)
        assert {s.name for s in splits} == {"Push Day", "Pull Day", "Leg Day", "Upper Body", "Lower Body"}
        assert all(s.is_preset for s in splits)

    def test_preset_splits_only_use_catalog_lifts(self):
        for _, names in catalog.PRESET_SPLITS:
            assert all(catalog.catalog_group(name) is not None for name in names)


class TestMergeAndSearch:
    def test_merge_has_no_duplicates_and_is_sorted(self):
        stored = [
            LiftDefinition(id=1, name="Deadlift", muscle_group=MuscleGroup.lower_back, is_custom=False),
            LiftDefinition(id=2, name="Zercher Squat", muscle_group=MuscleGroup.quads, is_custom=True),
        ]
        merged = catalog.merge_lifts(stored)
        names = [lift.name for lift in merged]
        assert len(names) == len(set(names))
        assert names == sorted(names)
        assert len(merged) == catalog.catalog_count() + 1
        # stored rows win over catalog entries
        assert next(lift for lift in merged if lift.name == "Deadlift").id == 1

    def test_merge_by_muscle_group(self):
        stored = [LiftDefinition(id=1, name="Zercher Squat", muscle_group=MuscleGroup.quads)]
        merged = catalog.merge_lifts(stored, MuscleGroup.quads)
        assert {lift.muscle_group for lift in merged} == {MuscleGroup.quads}
        assert "Zercher Squat" in [lift.name for lift in merged]
        assert len(merged) == len(catalog.PRELOADED_LIFTS[MuscleGroup.quads]) + 1

    def test_search_is_case_insensitive(self):
        lifts = catalog.merge_lifts([])
        names = [lift.name for lift in catalog.search_lifts(lifts, "  SQUAT ")]
        assert "Barbell Back Squat" in names
        assert "Bulgarian Split Squat" in names
        assert all("squat" in name.lower() for name in names)

    def test_blank_search_returns_everything(self):
        lifts = catalog.merge_lifts([])
        assert len(catalog.search_lifts(lifts, "")) == len(lifts)

    async def test_list_lifts(self, session):
        await catalog.seed_catalog_if_needed(session)
        await catalog.create_custom_lift(session, "Landmine Press", MuscleGroup.shoulders)
        lifts = await catalog.list_lifts(session, query="press", muscle_group=MuscleGroup.shoulders)
        names = [lift.name for lift in lifts]
        assert "Landmine Press" in names
        assert "Arnold Press" in names
        assert "Flat Dumbbell Press" not in names


class TestCustomLifts:
    async def test_create_trims_name(self, session):
        lift = await catalog.create_custom_lift(session, "  Landmine Press ", MuscleGroup.shoulders)
        assert lift.id is not None
        assert lift.name == "Landmine Press"
        assert lift.is_custom is True

    async def test_rejects_blank_and_duplicate_names(self, session):
        await catalog.create_custom_lift(session, "Landmine Press", MuscleGroup.shoulders)
        with pytest.raises(CatalogError):
            await catalog.create_custom_lift(session, "   ", MuscleGroup.shoulders)
        with pytest.raises(CatalogError):
            await catalog.create_custom_lift(session, "Landmine Press", MuscleGroup.chest)
        with pytest.raises(CatalogError):
            await catalog.create_custom_lift(session, "Deadlift", MuscleGroup.lower_back)

    async def test_rename(self, session):
        await catalog.seed_catalog_if_needed(session)
        lift = await catalog.create_custom_lift(session, "Landmine Press", MuscleGroup.shoulders)
        renamed = await catalog.rename_custom_lift(session, lift.id, "Half-Kneeling Landmine Press")
        assert renamed.name == "Half-Kneeling Landmine Press"

        preloaded = await catalog.get_or_create_lift(session, "Deadlift")
        with pytest.raises(CatalogError):
            await catalog.rename_custom_lift(session, preloaded.id, "My Deadlift")
        with pytest.raises(NotFoundError):
            await catalog.rename_custom_lift(session, 99999, "Nope")

    async def test_recent_lifts(self, session):
        await catalog.seed_catalog_if_needed(session)
        start = datetime(2026, 3, 2, 18, 0)
        await workouts.start_workout(session, now=start)
        for i, name in enumerate(["Deadlift", "Barbell Curl", "Plank"]):
            lift = await catalog.get_or_create_lift(session, name)
            await workouts.log_set(session, lift.id, 50, 5, now=start + timedelta(minutes=i))
        recent = await catalog.recent_lifts(session, limit=2)
        assert [lift.name for lift in recent] == ["Plank", "Barbell Curl"]


class TestSplits:
    async def test_save_split_from_workout(self, session):
        await catalog.seed_catalog_if_needed(session)
        start = datetime(2026, 3, 2, 18, 0)
        workout = await workouts.start_workout(session, now=start)
        order = ["Leg Press", "Deadlift", "Leg Press", "Plank"]
        for i, name in enumerate(order):
            lift = await catalog.get_or_create_lift(session, name)
            await workouts.log_set(session, lift.id, 50, 5, now=start + timedelta(minutes=i))

        split = await catalog.save_split_from_workout(session, workout.id, " Legs + Core ")
        assert split.name == "Legs + Core"
        assert split.lift_names == ["Leg Press", "Deadlift", "Plank"]
        assert split.is_preset is False

    async def test_empty_workout_cannot_become_a_split(self, session):
        workout = await workouts.start_workout(session)
        with pytest.raises(CatalogError):
            await catalog.save_split_from_workout(session, workout.id, "Nothing")
        with pytest.raises(NotFoundError):
            await catalog.save_split_from_workout(session, 999, "Nothing")

    async def test_load_split_stores_catalog_lifts(self, session):
        await catalog.seed_splits_if_needed(session)
        push = next(s for s in await catalog.list_splits(session) if s.name == "Push Day")
        lifts = await catalog.load_split(session, push.id)
        assert [lift.name for lift in lifts] == push.lift_names
        assert all(lift.id is not None for lift in lifts)

from datetime import datetime, timedelta

import pytest

from supersets.errors import SetValidationError
from supersets.models import ActivityLevel, BiologicalSex, WeightUnit
from supersets.services import analytics, body


class TestProfile:
    async def test_profile_is_a_singleton_with_defaults(self, session):
        profile = await body.get_or_create_profile(session)
        again = await body.get_or_create_profile(session)
        assert profile.id == again.id
        assert profile.age == 25
        assert profile.preferred_unit == WeightUnit.lbs
        assert profile.activity_level == ActivityLevel.moderate
        assert profile.default_rest_timer_seconds == 90

    async def test_update_profile(self, session):
        profile = await body.update_profile(
            session,
            {
                "age": 30,
                "height": 180,
                "body_weight": 80,
                "preferred_unit": WeightUnit.kg,
                "biological_sex": BiologicalSex.male,
            },
        )
        assert profile.age == 30
        assert analytics.resting_metabolic_rate(body.profile_entry(profile)) == 1780

    async def test_update_rejects_unknown_fields(self, session):
        with pytest.raises(SetValidationError):
            await body.update_profile(session, {"shoe_size": 44})

    @pytest.mark.parametrize("field", ["age", "body_weight", "height", "preferred_unit", "name"])
    async def test_update_rejects_null_for_required_fields(self, session, field):
        with pytest.raises(SetValidationError):
            await body.update_profile(session, {"waist": 32, field: None})
        profile = await body.get_or_create_profile(session)
        assert profile.waist == 34
        assert getattr(profile, field) is not None

    async def test_optional_fields_can_be_cleared(self, session):
        profile = await body.update_profile(session, {"start_date": None, "profile_photo": None})
        assert profile.start_date is None
        assert profile.profile_photo is None


class TestWeightLog:
    async def test_entries_within_window(self, session):
        now = datetime(2026, 3, 31, 8, 0)
        await body.log_weight(session, 182.0, now=now - timedelta(days=40))
        await body.log_weight(session, 181.0, now=now - timedelta(days=10))
        await body.log_weight(session, 180.5, now=now - timedelta(days=1))

        entries = await body.weight_entries(session, days=30, now=now)
        assert [e.weight for e in entries] == [181.0, 180.5]
        assert len(await body.weight_entries(session, days=60, now=now)) == 3

        latest = await body.latest_weight(session)
        assert latest.weight == 180.5

    async def test_latest_weight_without_entries(self, session):
        assert await body.latest_weight(session) is None

    async def test_rejects_non_positive_weight(self, session):
        with pytest.raises(SetValidationError):
            await body.log_weight(session, 0)

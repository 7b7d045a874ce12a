from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import SetValidationError
from ..models import UserProfile, WeightEntry
from .analytics import ProfileEntry

logger = logging.getLogger(__name__)

PROFILE_FIELDS = {
    "name",
    "age",
    "biological_sex",
    "height",
    "body_weight",
    "waist",
    "preferred_unit",
    "preferred_theme",
    "use_scroll_wheel_input",
    "default_rest_timer_seconds",
    "activity_level",
    "profile_photo",
    "start_date",
}

NULLABLE_PROFILE_FIELDS = {"profile_photo", "start_date"}


async def get_or_create_profile(session: AsyncSession) -> UserProfile:
    """The single user profile, created with defaults on first access."""
    result = await session.exec(select(UserProfile).order_by(UserProfile.id))
    profile = result.first()
    if profile is None:
        profile = UserProfile()
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        logger.info("body: created default profile")
    return profile


async def update_profile(session: AsyncSession, changes: Dict[str, Any]) -> UserProfile:
    """Apply a partial update; nothing is written if any field is rejected."""
    for key, value in changes.items():
        if key not in PROFILE_FIELDS:
            raise SetValidationError(f"unknown profile field {key!r}")
        if value is None and key not in NULLABLE_PROFILE_FIELDS:
            raise SetValidationError(f"profile field {key!r} cannot be empty")
    profile = await get_or_create_profile(session)
    for key, value in changes.items():
        setattr(profile, key, value)
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


def profile_entry(profile: UserProfile) -> ProfileEntry:
    return ProfileEntry(
        age=profile.age,
        biological_sex=profile.biological_sex,
        height=profile.height,
        body_weight=profile.body_weight,
        preferred_unit=profile.preferred_unit,
        activity_level=profile.activity_level,
    )


async def log_weight(
    session: AsyncSession, weight: float, now: Optional[datetime] = None
) -> WeightEntry:
    """Append a body weight entry, in the user's preferred unit."""
    if weight <= 0:
        raise SetValidationError("weight must be greater than zero")
    entry = WeightEntry(logged_at=now or datetime.now(), weight=weight)
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    return entry


async def weight_entries(
    session: AsyncSession, days: int = 30, now: Optional[datetime] = None
) -> List[WeightEntry]:
    """Entries from the last ``days`` days, oldest first."""
    start = (now or datetime.now()) - timedelta(days=days)
    result = await session.exec(
        select(WeightEntry).where(WeightEntry.logged_at >= start).order_by(WeightEntry.logged_at)
    )
    return list(result.all())


async def latest_weight(session: AsyncSession) -> Optional[WeightEntry]:
    result = await session.exec(
        select(WeightEntry).order_by(WeightEntry.logged_at.desc(), WeightEntry.id.desc()).limit(1)
    )
    return result.first()

"""
Read-only view of a user's training preferences.

The user_profiles table belongs to the profile service; this module only
reads it and fills any gap with onboarding defaults so prompt building never
has to deal with missing fields.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List

from sqlalchemy.orm import Session

from core.retry import RetryPolicy
from models import UserProfile
from services.workout_errors import StoreUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_GOAL = "improve-health"
DEFAULT_EQUIPMENT = ["bodyweight"]
DEFAULT_SESSION_DURATION_MIN = 45
DEFAULT_INJURIES = "none"
DEFAULT_COACHING_STYLE = "encouraging-positive"
DEFAULT_CARDIO_PREFERENCE = "neutral"
DEFAULT_FOCUS_AREAS = ["strength"]


@dataclass(frozen=True)
class ProfileSnapshot:
    user_id: str
    goal: str = DEFAULT_GOAL
    equipment: List[str] = field(default_factory=lambda: list(DEFAULT_EQUIPMENT))
    session_duration_min: int = DEFAULT_SESSION_DURATION_MIN
    injuries: str = DEFAULT_INJURIES
    coaching_style: str = DEFAULT_COACHING_STYLE
    cardio_preference: str = DEFAULT_CARDIO_PREFERENCE
    focus_areas: List[str] = field(default_factory=lambda: list(DEFAULT_FOCUS_AREAS))

    @classmethod
    def from_model(cls, profile: UserProfile) -> "ProfileSnapshot":
        duration = profile.session_duration_min
        return cls(
            user_id=profile.user_id,
            goal=profile.goal or DEFAULT_GOAL,
            equipment=list(profile.equipment_access or DEFAULT_EQUIPMENT),
            session_duration_min=duration if duration and duration > 0 else DEFAULT_SESSION_DURATION_MIN,
            injuries=(profile.injuries or "").strip() or DEFAULT_INJURIES,
            coaching_style=profile.coaching_style or DEFAULT_COACHING_STYLE,
            cardio_preference=profile.cardio_preference or DEFAULT_CARDIO_PREFERENCE,
            focus_areas=list(profile.focus_areas or DEFAULT_FOCUS_AREAS),
        )


class ProfileReader:
    """Loads ProfileSnapshots through the shared store retry policy."""

    def __init__(self, session_factory: Callable[[], Session], retry_policy: RetryPolicy):
        self._session_factory = session_factory
        self._retry = retry_policy

    def get(self, user_id: str) -> ProfileSnapshot:
        """Snapshot for user_id; defaults when the row is missing or the store is down."""

        def _read():
            session = self._session_factory()
            try:
                row = session.query(UserProfile).filter(UserProfile.user_id == user_id).first()
                return ProfileSnapshot.from_model(row) if row else None
            finally:
                session.close()

        try:
            snapshot = self._retry.call(_read, operation="user_profiles.get")
        except StoreUnavailableError:
            logger.warning(f"Profile store unavailable for user {user_id}, using defaults")
            return ProfileSnapshot(user_id=user_id)

        if snapshot is None:
            logger.info(f"No profile for user {user_id}, using defaults")
            return ProfileSnapshot(user_id=user_id)
        return snapshot

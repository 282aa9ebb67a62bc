from sqlalchemy import Column, Integer, Boolean, DateTime, Text, Index, UniqueConstraint, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from core.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests). Python None is stored as SQL NULL.
JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class Exercise(Base):
    """
    Canonical exercise catalog entry.

    Written only by the bulk upsert (keyed by slug). The generation pipeline
    reads it to build the prompt vocabulary and to resolve generated names.
    """
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(Text, unique=True, nullable=False)  # kebab-case of name
    name = Column(Text, nullable=False)
    aliases = Column(JSONType, nullable=False, default=list)  # ["pushups", "press-ups"]
    body_part = Column(Text, nullable=True)  # chest, back, legs, core, full, cardio, flexibility
    equipment = Column(JSONType, nullable=False, default=list)  # ["bodyweight", "dumbbells"]
    pattern = Column(Text, nullable=True)  # horizontal_push, vertical_pull, hinge, squat, stretch
    is_unilateral = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("exercises_name_idx", "name"),
    )


class WorkoutDay(Base):
    """
    One generated workout per (user, calendar date).

    status: pending | generating | ready | error
    payload_json: the validated workout when ready, {"error_reason": ...} when error,
                  NULL otherwise.
    """
    __tablename__ = "workout_days"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False)  # opaque, owned by the identity service
    date = Column(Text, nullable=False)  # YYYY-MM-DD
    status = Column(Text, nullable=False)
    payload_json = Column(JSONType, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)  # set on transition into ready
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        # The unique key is the mutual-exclusion mechanism for generation
        UniqueConstraint("user_id", "date", name="uq_workout_days_user_date"),
        Index("workout_days_user_date_idx", "user_id", "date"),
    )


class UserProfile(Base):
    """
    Training preferences captured during onboarding.

    Owned by the profile service; the workout pipeline only reads it.
    """
    __tablename__ = "user_profiles"

    user_id = Column(Text, primary_key=True)
    goal = Column(Text, nullable=True)  # improve-health, build-muscle, lose-weight, ...
    focus_areas = Column(JSONType, nullable=True)  # ["strength", "mobility"]
    equipment_access = Column(JSONType, nullable=True)  # ["bodyweight", "dumbbells"]
    session_duration_min = Column(Integer, nullable=True)
    injuries = Column(Text, nullable=True)  # free text, "none" when absent
    coaching_style = Column(Text, nullable=True)  # encouraging-positive, direct-challenging, ...
    cardio_preference = Column(Text, nullable=True)  # love | like | neutral | dislike
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

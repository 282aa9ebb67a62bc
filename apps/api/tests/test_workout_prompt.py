"""
Tests for prompt building and the profile snapshot it is built from.
"""
from datetime import date

from conftest import USER_ID, down_session_factory
from core.database import SessionLocal
from models import UserProfile
from services.profile_snapshot import ProfileReader, ProfileSnapshot
from services.workout_prompt import build_generation_request, categorize
from services.exercise_catalog import CatalogEntry


DAY = date(2025, 1, 8)


class TestProfileReader:
    def test_missing_profile_uses_defaults(self, retry_policy):
        snapshot = ProfileReader(SessionLocal, retry_policy).get(USER_ID)
        assert snapshot.goal == "improve-health"
        assert snapshot.equipment == ["bodyweight"]
        assert snapshot.session_duration_min == 45
        assert snapshot.injuries == "none"
        assert snapshot.coaching_style == "encouraging-positive"
        assert snapshot.cardio_preference == "neutral"
        assert snapshot.focus_areas == ["strength"]

    def test_stored_profile_with_gaps(self, db_session, retry_policy):
        db_session.add(UserProfile(user_id=USER_ID, goal="lose-weight", injuries="  ", session_duration_min=0))
        db_session.commit()

        snapshot = ProfileReader(SessionLocal, retry_policy).get(USER_ID)
        assert snapshot.goal == "lose-weight"
        assert snapshot.injuries == "none"
        assert snapshot.session_duration_min == 45
        assert snapshot.equipment == ["bodyweight"]

    def test_store_down_uses_defaults(self, retry_policy):
        snapshot = ProfileReader(down_session_factory, retry_policy).get(USER_ID)
        assert snapshot == ProfileSnapshot(user_id=USER_ID)


class TestPromptBuilder:
    def test_categories(self):
        assert categorize(CatalogEntry(id=1, slug="a", name="A", body_part="chest")) == ["upper_body"]
        assert categorize(CatalogEntry(id=2, slug="b", name="B", body_part="legs")) == ["lower_body"]
        assert categorize(CatalogEntry(id=3, slug="c", name="C", body_part="cardio", pattern="locomotion")) == ["cardio"]
        assert categorize(CatalogEntry(id=4, slug="d", name="D", body_part="flexibility", pattern="mobility")) == [
            "warmup", "recovery",
        ]

    def test_vocabulary_filtered_by_equipment(self, catalog):
        request = build_generation_request(ProfileSnapshot(user_id=USER_ID), catalog, DAY)
        assert "Push-Ups" in request.vocabulary["upper_body"]
        # Needs a pull-up bar
        assert "Pull-Ups" not in request.vocabulary["upper_body"]
        assert "Pull-Ups" not in request.system_prompt

        with_bar = ProfileSnapshot(user_id=USER_ID, equipment=["pull-up bar"])
        request = build_generation_request(with_bar, catalog, DAY)
        assert "Pull-Ups" in request.vocabulary["upper_body"]
        # Bodyweight is always available
        assert "Push-Ups" in request.vocabulary["upper_body"]

    def test_prompt_contents(self, catalog):
        profile = ProfileSnapshot(
            user_id=USER_ID,
            goal="build-muscle",
            focus_areas=["strength", "core"],
            session_duration_min=30,
            injuries="lower back",
            coaching_style="direct-challenging",
            cardio_preference="dislike",
        )
        request = build_generation_request(profile, catalog, DAY)

        assert request.day == "2025-01-08"
        for text in [
            "Goal: build-muscle",
            "Focus Areas: strength, core",
            "Target Duration: 30 minutes",
            "Injuries/Exclusions: lower back",
            "Cardio Preference: dislike",
            "EXACTLY 1 main block with 3-6 items",
            '"date": "2025-01-08"',
            '"duration_min": 30',
        ]:
            assert text in request.system_prompt
        assert "Avoid exercises that might aggravate: lower back." in request.user_prompt
        assert "direct-challenging" in request.user_prompt

    def test_no_injuries_line(self, catalog):
        request = build_generation_request(ProfileSnapshot(user_id=USER_ID), catalog, DAY)
        assert "No injury limitations." in request.user_prompt

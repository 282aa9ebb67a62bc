"""
Tests for the generation orchestrator: claims, the generation pipeline,
terminal states and cache interaction.
"""
from datetime import date, timedelta

import pytest

from conftest import (
    TODAY,
    USER_ID,
    ExplodingGenerator,
    FakeGenerator,
    SlowGenerator,
    as_model_output,
    make_workout,
)
from core.database import SessionLocal
from models import UserProfile
from services.profile_snapshot import ProfileReader
from services.workout_generation import WorkoutGenerationOrchestrator

TOMORROW = TODAY + timedelta(days=1)


def _build(store, result_cache, generator, catalog, retry_policy, timeout_s=2.0):
    return WorkoutGenerationOrchestrator(
        store=store,
        cache=result_cache,
        generator=generator,
        catalog_loader=lambda: catalog,
        profile_reader=ProfileReader(SessionLocal, retry_policy),
        timeout_s=timeout_s,
        clock=lambda: TODAY,
    )


class TestRequestDay:
    def test_today_starts_generation_then_no_action(self, orchestrator, generator):
        first = orchestrator.request_day(USER_ID, TODAY)
        assert first.status == "generating"
        assert first.needs_generation is True

        second = orchestrator.request_day(USER_ID, TODAY)
        assert second.status == "no_action"
        assert second.needs_generation is False
        # request_day never calls the model itself
        assert generator.calls == []

    def test_future_date_is_pending_without_generation(self, orchestrator, generator, store):
        outcome = orchestrator.request_day(USER_ID, TOMORROW)
        assert outcome.status == "pending"
        assert outcome.needs_generation is False
        assert generator.calls == []
        assert store.get(USER_ID, TOMORROW.isoformat()).status == "pending"

    def test_pending_day_can_be_requested_again(self, orchestrator):
        orchestrator.request_day(USER_ID, TOMORROW)
        assert orchestrator.request_day(USER_ID, TOMORROW).status == "pending"

    def test_ready_day_is_idempotent(self, orchestrator, generator):
        orchestrator.request_day(USER_ID, TODAY)
        orchestrator.run_generation(USER_ID, TODAY)
        assert len(generator.calls) == 1

        for _ in range(3):
            assert orchestrator.request_day(USER_ID, TODAY).status == "no_action"
        assert orchestrator.get_day(USER_ID, TODAY)["status"] == "ready"
        assert len(generator.calls) == 1

    def test_error_day_can_be_retried(self, store, result_cache, catalog, retry_policy):
        generator = FakeGenerator("not json at all")
        orch = _build(store, result_cache, generator, catalog, retry_policy)
        orch.request_day(USER_ID, TODAY)
        orch.run_generation(USER_ID, TODAY)
        assert orch.get_day(USER_ID, TODAY)["status"] == "error"

        assert orch.request_day(USER_ID, TODAY).status == "generating"


class TestRunGeneration:
    def test_success_stores_validated_payload(self, orchestrator, generator):
        orchestrator.request_day(USER_ID, TODAY)
        record = orchestrator.run_generation(USER_ID, TODAY)

        assert record.status == "ready"
        assert record.completed_at is not None
        blocks = record.payload["blocks"]
        assert [b["type"] for b in blocks] == ["warmup", "main", "recovery"]
        assert 3 <= len(blocks[1]["items"]) <= 6

        request = generator.calls[0]
        assert request.day == TODAY.isoformat()
        assert "3-6 items" in request.system_prompt

    def test_model_ids_are_replaced_by_catalog_ids(self, store, result_cache, catalog, retry_policy):
        doc = make_workout()
        # Models number items sequentially; the catalog decides the real ids
        for n, item in enumerate(i for b in doc["blocks"] for i in b["items"]):
            item["exercise_id"] = n + 1
        orch = _build(store, result_cache, FakeGenerator(as_model_output(doc)), catalog, retry_policy)

        orch.request_day(USER_ID, TODAY)
        record = orch.run_generation(USER_ID, TODAY)

        assert record.status == "ready"
        ids = {i["name"]: i["exercise_id"] for b in record.payload["blocks"] for i in b["items"]}
        assert ids["Push-Ups"] == 2
        assert ids["Child's Pose"] == 11

    def test_timeout_becomes_error(self, store, result_cache, catalog, retry_policy):
        generator = SlowGenerator()
        orch = _build(store, result_cache, generator, catalog, retry_policy, timeout_s=0.05)
        try:
            orch.request_day(USER_ID, TODAY)
            record = orch.run_generation(USER_ID, TODAY)
        finally:
            generator.release.set()

        assert record.status == "error"
        assert "timeout" in record.payload["error_reason"]

    def test_unknown_exercise_becomes_error(self, store, result_cache, catalog, retry_policy):
        doc = make_workout()
        doc["blocks"][1]["items"][0]["name"] = "Underwater Basket Weaving"
        orch = _build(store, result_cache, FakeGenerator(as_model_output(doc)), catalog, retry_policy)

        orch.request_day(USER_ID, TODAY)
        record = orch.run_generation(USER_ID, TODAY)

        assert record.status == "error"
        assert record.payload == {"error_reason": "exercise not found: Underwater Basket Weaving"}

    def test_invalid_structure_becomes_error(self, store, result_cache, catalog, retry_policy):
        generator = FakeGenerator(as_model_output(make_workout(main_items=2)))
        orch = _build(store, result_cache, generator, catalog, retry_policy)

        orch.request_day(USER_ID, TODAY)
        record = orch.run_generation(USER_ID, TODAY)

        assert record.status == "error"
        reason = record.payload["error_reason"]
        assert reason.startswith("Workout validation failed")
        assert "3-6 items" in reason

    def test_garbled_output_becomes_error(self, store, result_cache, catalog, retry_policy):
        generator = FakeGenerator('{"title": "Leg Day", "blocks": [')
        orch = _build(store, result_cache, generator, catalog, retry_policy)

        orch.request_day(USER_ID, TODAY)
        record = orch.run_generation(USER_ID, TODAY)

        assert record.status == "error"
        assert record.payload["error_reason"].startswith("Unparsable generation output")

    def test_unexpected_exception_never_escapes(self, store, result_cache, catalog, retry_policy):
        generator = ExplodingGenerator(RuntimeError("socket closed"))
        orch = _build(store, result_cache, generator, catalog, retry_policy)

        orch.request_day(USER_ID, TODAY)
        record = orch.run_generation(USER_ID, TODAY)

        assert record.status == "error"
        assert "socket closed" in record.payload["error_reason"]

    def test_error_reason_is_truncated(self, store, result_cache, catalog, retry_policy):
        generator = ExplodingGenerator(RuntimeError("x" * 1000))
        orch = _build(store, result_cache, generator, catalog, retry_policy)

        orch.request_day(USER_ID, TODAY)
        record = orch.run_generation(USER_ID, TODAY)
        assert len(record.payload["error_reason"]) == 200

    def test_profile_feeds_prompt(self, orchestrator, generator, db_session):
        db_session.add(UserProfile(
            user_id=USER_ID,
            goal="build-muscle",
            focus_areas=["upper body"],
            equipment_access=["bodyweight", "pull-up bar"],
            session_duration_min=30,
            injuries="left knee",
            coaching_style="direct-challenging",
        ))
        db_session.commit()

        orchestrator.request_day(USER_ID, TODAY)
        orchestrator.run_generation(USER_ID, TODAY)

        request = generator.calls[0]
        assert "build-muscle" in request.system_prompt
        assert "Avoid exercises that might aggravate: left knee." in request.user_prompt
        assert "Pull-Ups" in request.vocabulary["upper_body"]


class TestWeek:
    def test_request_week(self, orchestrator, generator):
        result = orchestrator.request_week(USER_ID)

        assert result["week_start"] == "2025-01-06"
        assert result["week_end"] == "2025-01-12"
        statuses = {o.date: o.status for o in result["days"]}
        assert len(statuses) == 7
        assert statuses[TODAY.isoformat()] == "generating"
        assert [d for d, s in statuses.items() if s == "generating"] == [TODAY.isoformat()]
        assert all(s == "pending" for d, s in statuses.items() if d != TODAY.isoformat())
        assert generator.calls == []

    def test_request_week_twice(self, orchestrator):
        orchestrator.request_week(USER_ID)
        result = orchestrator.request_week(USER_ID)
        statuses = {o.date: o.status for o in result["days"]}
        assert statuses[TODAY.isoformat()] == "no_action"

    def test_get_week(self, orchestrator):
        orchestrator.request_week(USER_ID)
        orchestrator.run_generation(USER_ID, TODAY)

        week = orchestrator.get_week(USER_ID)
        assert week["week_start"] == "2025-01-06"
        assert len(week["days"]) == 7
        by_date = {d["date"]: d for d in week["days"]}
        assert by_date[TODAY.isoformat()]["status"] == "ready"
        assert by_date["2025-01-06"]["status"] == "pending"


class TestCacheInteraction:
    def test_only_terminal_today_row_is_cached(self, orchestrator, result_cache):
        orchestrator.request_day(USER_ID, TODAY)
        assert orchestrator.get_day(USER_ID, TODAY)["status"] == "generating"
        assert result_cache.get_today(USER_ID, TODAY.isoformat()) is None

        orchestrator.run_generation(USER_ID, TODAY)
        assert orchestrator.get_day(USER_ID, TODAY)["status"] == "ready"
        assert result_cache.get_today(USER_ID, TODAY.isoformat())["status"] == "ready"

    def test_reclaim_invalidates_cached_error_row(self, store, result_cache, catalog, retry_policy):
        generator = FakeGenerator(as_model_output(make_workout(main_items=2)))
        orchestrator = _build(store, result_cache, generator, catalog, retry_policy)
        orchestrator.request_day(USER_ID, TODAY)
        orchestrator.run_generation(USER_ID, TODAY)
        assert orchestrator.get_day(USER_ID, TODAY)["status"] == "error"
        assert result_cache.get_today(USER_ID, TODAY.isoformat()) is not None

        assert orchestrator.request_day(USER_ID, TODAY).status == "generating"
        assert result_cache.get_today(USER_ID, TODAY.isoformat()) is None
        assert orchestrator.get_day(USER_ID, TODAY)["status"] == "generating"

    def test_poll_racing_finalization_does_not_cache_stale_row(self, orchestrator, store, result_cache):
        orchestrator.request_day(USER_ID, TODAY)
        read = store.get

        def read_then_finish(user_id, day):
            record = read(user_id, day)
            # Generation completes between the poll's store read and its cache fill
            orchestrator.run_generation(USER_ID, TODAY)
            return record

        store.get = read_then_finish
        assert orchestrator.get_day(USER_ID, TODAY)["status"] == "generating"
        store.get = read

        assert orchestrator.get_day(USER_ID, TODAY)["status"] == "ready"

    def test_week_read_racing_finalization_does_not_cache_stale_week(self, orchestrator, store):
        orchestrator.request_week(USER_ID)
        read_many = store.get_many

        def read_then_finish(user_id, days):
            records = read_many(user_id, days)
            orchestrator.run_generation(USER_ID, TODAY)
            return records

        store.get_many = read_then_finish
        stale = {d["date"]: d["status"] for d in orchestrator.get_week(USER_ID)["days"]}
        assert stale[TODAY.isoformat()] == "generating"
        store.get_many = read_many

        fresh = {d["date"]: d["status"] for d in orchestrator.get_week(USER_ID)["days"]}
        assert fresh[TODAY.isoformat()] == "ready"

    def test_other_days_are_not_cached(self, orchestrator, result_cache):
        orchestrator.request_day(USER_ID, TOMORROW)
        assert orchestrator.get_day(USER_ID, TOMORROW)["status"] == "pending"
        assert result_cache.get_today(USER_ID, TOMORROW.isoformat()) is None

    def test_week_cache_invalidated_by_claim(self, orchestrator, result_cache):
        orchestrator.request_day(USER_ID, TOMORROW)
        assert len(orchestrator.get_week(USER_ID)["days"]) == 1
        assert result_cache.get_week(USER_ID, "2025-01-06") is not None

        orchestrator.request_day(USER_ID, TODAY)
        assert result_cache.get_week(USER_ID, "2025-01-06") is None
        assert len(orchestrator.get_week(USER_ID)["days"]) == 2

    def test_missing_day_returns_none(self, orchestrator):
        assert orchestrator.get_day(USER_ID, date(2025, 2, 1)) is None

"""
Workout Generation Orchestrator

Drives one (user, date) through pending -> generating -> ready | error.

Request side (runs inside the HTTP request):
    request_day() claims the key. Today's date is claimed as `generating` and
    the caller schedules run_generation(); any other date is parked as
    `pending` with no generation call. A key already ready or generating is
    left alone (`no_action`).

Work side (runs as a background task):
    run_generation() loads the profile and a catalog snapshot, builds the
    prompt, calls the model under a hard timeout, decodes the output,
    resolves every exercise name to a catalog id, validates, and records
    either `ready` with the payload or `error` with an error_reason.
    It never raises.

Reads go through WorkoutResultCache; every row change drops the cache
entries that could show it.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from services.exercise_catalog import ExerciseCatalog
from services.profile_snapshot import ProfileReader
from services.workout_day_store import (
    ACTIVE_STATUSES,
    STATUS_GENERATING,
    STATUS_PENDING,
    TERMINAL_STATUSES,
    WorkoutDayRecord,
    WorkoutDayStore,
)
from services.workout_errors import (
    PayloadValidationError,
    StoreUnavailableError,
    UnknownGenerationError,
    WorkoutGenerationError,
)
from services.workout_llm import call_with_timeout
from services.workout_payload import decode_workout_text, item_names, with_exercise_ids
from services.workout_prompt import build_generation_request
from services.workout_result_cache import WorkoutResultCache, week_start_for
from services.workout_validator import PayloadValidator

logger = logging.getLogger(__name__)

OUTCOME_GENERATING = "generating"
OUTCOME_PENDING = "pending"
OUTCOME_NO_ACTION = "no_action"


@dataclass(frozen=True)
class DayRequestOutcome:
    date: str
    status: str  # generating | pending | no_action
    message: str

    @property
    def needs_generation(self) -> bool:
        return self.status == OUTCOME_GENERATING

    def to_dict(self) -> Dict[str, str]:
        return {"date": self.date, "status": self.status, "message": self.message}


class WorkoutGenerationOrchestrator:
    def __init__(
        self,
        store: WorkoutDayStore,
        cache: WorkoutResultCache,
        generator: Any,
        catalog_loader: Callable[[], ExerciseCatalog],
        profile_reader: ProfileReader,
        timeout_s: float = 20.0,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.cache = cache
        self.generator = generator
        self.catalog_loader = catalog_loader
        self.profile_reader = profile_reader
        self.timeout_s = timeout_s
        self.clock = clock

    def today(self) -> date:
        return self.clock()

    def week_bounds(self) -> tuple:
        start = week_start_for(self.today())
        return start, start + timedelta(days=6)

    # ------------------------------------------------------------------
    # Request side
    # ------------------------------------------------------------------

    def request_day(self, user_id: str, day: date) -> DayRequestOutcome:
        day_str = day.isoformat()
        is_today = day == self.today()

        try:
            existing = self.store.get(user_id, day_str)
        except StoreUnavailableError:
            # The claim below is still guarded by the unique key
            existing = None

        if existing is not None and existing.status in ACTIVE_STATUSES:
            return DayRequestOutcome(day_str, OUTCOME_NO_ACTION, f"Workout for {day_str} is already {existing.status}")

        target = STATUS_GENERATING if is_today else STATUS_PENDING
        record = self.store.claim(user_id, day_str, target)
        if record is None:
            return DayRequestOutcome(day_str, OUTCOME_NO_ACTION, f"Workout for {day_str} is already being generated")

        self.cache.invalidate_day(user_id, day)
        if is_today:
            return DayRequestOutcome(day_str, OUTCOME_GENERATING, f"Workout generation started for {day_str}")
        return DayRequestOutcome(day_str, OUTCOME_PENDING, f"Workout for {day_str} set to pending (not today)")

    def request_week(self, user_id: str) -> Dict[str, Any]:
        """request_day() for Monday through Sunday of the current week."""
        start, end = self.week_bounds()
        outcomes: List[DayRequestOutcome] = []
        for offset in range(7):
            outcomes.append(self.request_day(user_id, start + timedelta(days=offset)))
        return {
            "week_start": start.isoformat(),
            "week_end": end.isoformat(),
            "days": outcomes,
        }

    # ------------------------------------------------------------------
    # Work side
    # ------------------------------------------------------------------

    def run_generation(self, user_id: str, day: date) -> Optional[WorkoutDayRecord]:
        """Generate, validate and finalize one day. Never raises."""
        day_str = day.isoformat()
        logger.info(f"Generating workout for {user_id}/{day_str}")
        try:
            payload = self._generate_payload(user_id, day)
            record = self.store.mark_ready(user_id, day_str, payload)
        except WorkoutGenerationError as e:
            logger.warning(f"Workout generation failed for {user_id}/{day_str} ({e.code}): {e.error_reason}")
            record = self._mark_error(user_id, day_str, e.error_reason)
        except SQLAlchemyError as e:
            logger.error(f"Workout store error for {user_id}/{day_str}: {e}")
            record = self._mark_error(user_id, day_str, f"Workout store error: {type(e).__name__}")
        except Exception as e:
            logger.exception(f"Unexpected error generating workout for {user_id}/{day_str}")
            record = self._mark_error(user_id, day_str, UnknownGenerationError(f"Unexpected error: {e}").error_reason)
        finally:
            self.cache.invalidate_day(user_id, day)
        return record

    def _generate_payload(self, user_id: str, day: date) -> Dict[str, Any]:
        day_str = day.isoformat()
        profile = self.profile_reader.get(user_id)
        catalog = self.catalog_loader()
        if catalog.using_fallback:
            logger.warning(f"Generating {user_id}/{day_str} against the seed exercise registry")

        request = build_generation_request(profile, catalog, day)
        text = call_with_timeout(self.generator, request, self.timeout_s)
        doc = decode_workout_text(text)

        ids_by_name = catalog.resolve_many(item_names(doc))
        doc = with_exercise_ids(doc, ids_by_name)

        result = PayloadValidator(catalog).validate(doc, expected_date=day_str)
        if not result.ok:
            raise PayloadValidationError(result.errors)
        return result.payload

    def _mark_error(self, user_id: str, day_str: str, error_reason: str) -> Optional[WorkoutDayRecord]:
        try:
            return self.store.mark_error(user_id, day_str, error_reason)
        except SQLAlchemyError:
            logger.exception(f"Could not record error state for {user_id}/{day_str}")
            return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_day(self, user_id: str, day: date) -> Optional[Dict[str, Any]]:
        """The row for (user_id, day) as a dict, or None. Today's row is cached once terminal."""
        day_str = day.isoformat()
        is_today = day == self.today()
        if is_today:
            cached = self.cache.get_today(user_id, day_str)
            if cached is not None:
                return cached

        record = self.store.get(user_id, day_str)
        if record is None:
            return None

        row = record.to_dict()
        # An in-flight row can be finalized between this read and the fill
        if is_today and record.durable and record.status in TERMINAL_STATUSES:
            self.cache.set_today(user_id, day_str, row)
        return row

    def get_week(self, user_id: str) -> Dict[str, Any]:
        """Rows for the current Monday-Sunday week (dates with no row are omitted)."""
        start, end = self.week_bounds()
        start_str = start.isoformat()
        cached = self.cache.get_week(user_id, start_str)
        if cached is not None:
            return cached

        dates = [(start + timedelta(days=offset)).isoformat() for offset in range(7)]
        records = self.store.get_many(user_id, dates)
        week = {
            "week_start": start_str,
            "week_end": end.isoformat(),
            "days": [records[d].to_dict() for d in dates if d in records],
        }
        if all(r.durable and r.status != STATUS_GENERATING for r in records.values()):
            self.cache.set_week(user_id, start_str, week)
        return week

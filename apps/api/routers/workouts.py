"""
Workouts API Router

Per-user, per-day generated workouts.

Endpoints:
- POST /workouts/generate-day - Claim a day; today's date starts generation
- GET /workouts/day - Current state of one day
- POST /workouts/generate-week - generate-day for Monday-Sunday of this week
- GET /workouts/week - Current state of this week's days
- POST /workouts/validate - Run the payload validator on a document

generate-day only accepts work. Generation runs as a background task and
its outcome is read back through GET /workouts/day.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, Request
from fastapi.responses import JSONResponse

from core.auth import CurrentUser, get_current_user
from core.cache import get_redis_client
from core.config import settings
from core.database import SessionLocal
from core.exceptions import APIException, ValidationError
from core.retry import RetryPolicy
from routers.exercises import get_exercise_catalog
from schemas import (
    DayNotFoundResponse,
    GenerateDayRequest,
    GenerateDayResponse,
    GenerateWeekResponse,
    PayloadValidationResponse,
    WorkoutDayResponse,
    WorkoutWeekResponse,
)
from services.exercise_catalog import ExerciseCatalog
from services.profile_snapshot import ProfileReader
from services.workout_day_store import WorkoutDayStore
from services.workout_errors import StoreUnavailableError
from services.workout_generation import WorkoutGenerationOrchestrator
from services.workout_llm import GeminiWorkoutGenerator
from services.workout_result_cache import WorkoutResultCache
from services.workout_validator import PayloadValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workouts", tags=["Workouts"])


# =============================================================================
# DEPENDENCIES
# =============================================================================

def build_workout_orchestrator() -> WorkoutGenerationOrchestrator:
    retry_policy = RetryPolicy.from_settings()
    redis = get_redis_client() if settings.WORKOUT_CACHE_USE_REDIS else None
    return WorkoutGenerationOrchestrator(
        store=WorkoutDayStore(SessionLocal, retry_policy),
        cache=WorkoutResultCache(redis),
        generator=GeminiWorkoutGenerator(),
        catalog_loader=lambda: ExerciseCatalog.load(SessionLocal, retry_policy),
        profile_reader=ProfileReader(SessionLocal, retry_policy),
        timeout_s=settings.WORKOUT_GENERATION_TIMEOUT_S,
    )


def get_workout_orchestrator(request: Request) -> WorkoutGenerationOrchestrator:
    """One orchestrator per application; it owns the store fallback and the cache."""
    orchestrator = getattr(request.app.state, "workout_orchestrator", None)
    if orchestrator is None:
        orchestrator = build_workout_orchestrator()
        request.app.state.workout_orchestrator = orchestrator
    return orchestrator


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD", field="date")


def _store_unavailable(e: StoreUnavailableError) -> APIException:
    logger.error(f"Workout store unavailable: {e.error_reason}")
    return APIException(
        status_code=503,
        detail="Workout storage temporarily unavailable",
        error_code="STORE_UNAVAILABLE",
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/generate-day", response_model=GenerateDayResponse)
def generate_day(
    body: GenerateDayRequest,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    orchestrator: WorkoutGenerationOrchestrator = Depends(get_workout_orchestrator),
):
    """
    Request the workout for a date.

    - today, not yet ready/generating: `generating`, generation scheduled
    - any other date: `pending`, nothing generated
    - already ready or generating: `no_action`
    """
    day = _parse_date(body.date)
    outcome = orchestrator.request_day(current_user.user_id, day)
    if outcome.needs_generation:
        background_tasks.add_task(orchestrator.run_generation, current_user.user_id, day)
    logger.info(f"generate-day {current_user.user_id}/{outcome.date}: {outcome.status}")
    return {"status": outcome.status, "message": outcome.message}


@router.get("/day", response_model=WorkoutDayResponse, responses={200: {"model": DayNotFoundResponse}})
def get_day(
    date_str: str = Query(..., alias="date", description="YYYY-MM-DD"),
    current_user: CurrentUser = Depends(get_current_user),
    orchestrator: WorkoutGenerationOrchestrator = Depends(get_workout_orchestrator),
):
    day = _parse_date(date_str)
    try:
        row = orchestrator.get_day(current_user.user_id, day)
    except StoreUnavailableError as e:
        raise _store_unavailable(e)

    if row is None:
        return JSONResponse(
            content=DayNotFoundResponse(message=f"No workout for {day.isoformat()}").model_dump()
        )
    return row


@router.post("/generate-week", response_model=GenerateWeekResponse)
def generate_week(
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    orchestrator: WorkoutGenerationOrchestrator = Depends(get_workout_orchestrator),
):
    """Request every day of the current Monday-Sunday week."""
    result = orchestrator.request_week(current_user.user_id)
    for outcome in result["days"]:
        if outcome.needs_generation:
            background_tasks.add_task(
                orchestrator.run_generation, current_user.user_id, _parse_date(outcome.date)
            )
    return {
        "week_start": result["week_start"],
        "week_end": result["week_end"],
        "days": [outcome.to_dict() for outcome in result["days"]],
    }


@router.get("/week", response_model=WorkoutWeekResponse)
def get_week(
    current_user: CurrentUser = Depends(get_current_user),
    orchestrator: WorkoutGenerationOrchestrator = Depends(get_workout_orchestrator),
):
    try:
        return orchestrator.get_week(current_user.user_id)
    except StoreUnavailableError as e:
        raise _store_unavailable(e)


@router.post("/validate", response_model=PayloadValidationResponse)
def validate_payload(
    payload: Dict[str, Any] = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    catalog: ExerciseCatalog = Depends(get_exercise_catalog),
):
    """Validate a workout document against the current catalog without storing it."""
    result = PayloadValidator(catalog).validate(payload)
    return {"ok": result.ok, "errors": result.errors}

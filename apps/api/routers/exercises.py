"""
Exercises API Router

Maintenance surface for the canonical exercise catalog.

Endpoints:
- POST /exercises/bulk-upsert - Insert/update up to 300 exercises keyed by slug
- GET /exercises/resolve - Show which catalog entry a free-text name maps to
"""
import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from core.auth import CurrentUser, get_current_user
from core.database import SessionLocal, get_db
from core.exceptions import NotFoundError
from core.retry import RetryPolicy
from schemas import BulkUpsertResponse, ExerciseResolveResponse
from services.exercise_bulk_upsert import bulk_upsert_exercises
from services.exercise_catalog import ExerciseCatalog, normalize_exercise_name
from services.workout_errors import ExerciseNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exercises", tags=["Exercises"])


def get_exercise_catalog() -> ExerciseCatalog:
    """Fresh catalog snapshot for one request."""
    return ExerciseCatalog.load(SessionLocal, RetryPolicy.from_settings())


@router.post("/bulk-upsert", response_model=BulkUpsertResponse)
def bulk_upsert(
    items: List[Any] = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Insert or update exercises by slug.

    Invalid items are skipped and reported with their index; only the first
    300 items of a call are processed.
    """
    logger.info(f"Exercise bulk upsert of {len(items)} item(s) by {current_user.user_id}")
    return bulk_upsert_exercises(db, items)


@router.get("/resolve", response_model=ExerciseResolveResponse)
def resolve_exercise(
    name: str = Query(..., min_length=1),
    current_user: CurrentUser = Depends(get_current_user),
    catalog: ExerciseCatalog = Depends(get_exercise_catalog),
):
    try:
        exercise_id = catalog.resolve(name)
    except ExerciseNotFoundError:
        raise NotFoundError("Exercise", name)
    return {
        "name": name,
        "normalized": normalize_exercise_name(name),
        "exercise_id": exercise_id,
        "using_fallback": catalog.using_fallback,
    }

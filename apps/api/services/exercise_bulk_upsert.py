"""
Exercise catalog bulk upsert.

The only write path into the exercises table. Items are keyed by slug
(derived from the name when absent); each item is committed on its own so
a bad row is reported and skipped without losing the rest of the batch.
"""
import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from models import Exercise
from schemas import ExerciseRecordIn
from services.exercise_catalog import to_slug

logger = logging.getLogger(__name__)


def _format_pydantic_error(e: PydanticValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Validation failed"


def bulk_upsert_exercises(db: Session, items: List[Any], max_items: int = None) -> Dict[str, Any]:
    """
    Insert or update exercises by slug.

    Returns {inserted, updated, skipped, total, ignored, validation_errors}.
    Items beyond max_items are ignored and counted separately.
    """
    limit = max_items if max_items is not None else settings.EXERCISE_BULK_UPSERT_MAX_ITEMS
    batch = list(items[:limit])
    ignored = max(0, len(items) - limit)

    inserted = 0
    updated = 0
    skipped = 0
    validation_errors: List[Dict[str, Any]] = []

    for index, item in enumerate(batch):
        try:
            record = ExerciseRecordIn.model_validate(item)
        except PydanticValidationError as e:
            validation_errors.append({"index": index, "error": _format_pydantic_error(e), "item": item})
            skipped += 1
            continue

        slug = (record.slug or "").strip() or to_slug(record.name)
        if not slug:
            validation_errors.append({"index": index, "error": "Cannot generate slug from name", "item": item})
            skipped += 1
            continue

        values = {
            "name": record.name.strip(),
            "aliases": [a.lower().strip() for a in record.aliases if a and a.strip()],
            "body_part": record.body_part,
            "equipment": [e.lower().strip() for e in record.equipment if e and e.strip()],
            "pattern": record.pattern,
            "is_unilateral": record.is_unilateral,
        }

        try:
            existing = db.query(Exercise).filter(Exercise.slug == slug).first()
            if existing:
                for key, value in values.items():
                    setattr(existing, key, value)
                db.commit()
                updated += 1
            else:
                db.add(Exercise(slug=slug, **values))
                db.commit()
                inserted += 1
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Exercise upsert failed for item {index} (slug={slug}): {e}")
            validation_errors.append({"index": index, "error": f"Database error: {e}", "item": item})
            skipped += 1

    logger.info(
        f"Exercise bulk upsert: inserted={inserted} updated={updated} skipped={skipped} "
        f"total={len(batch)} ignored={ignored}"
    )
    return {
        "inserted": inserted,
        "updated": updated,
        "skipped": skipped,
        "total": len(batch),
        "ignored": ignored,
        "validation_errors": validation_errors,
    }

"""
Workout payload validator.

Runs every check and reports every problem; nothing short-circuits, so a
single pass tells the caller everything that is wrong with a document.

Checks:
1. Schema (strict types, no coercion)
2. Block cardinality: one warmup, one main with 3-6 items, one recovery
3. Every exercise_id exists in the catalog (checked as one batch)
4. Every item name resolves to the same id it carries
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from schemas import WorkoutPayloadDoc
from services.exercise_catalog import ExerciseCatalog
from services.workout_errors import ExerciseNotFoundError
from services.workout_prompt import MAIN_BLOCK_MAX_ITEMS, MAIN_BLOCK_MIN_ITEMS

logger = logging.getLogger(__name__)

REQUIRED_BLOCK_TYPES = ("warmup", "main", "recovery")


@dataclass
class ValidationResult:
    ok: bool
    errors: List[str] = field(default_factory=list)
    # Schema-clean document (extra keys dropped), None when the schema check failed
    payload: Optional[Dict[str, Any]] = None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _blocks(doc: Any) -> List[Dict[str, Any]]:
    if not isinstance(doc, dict) or not isinstance(doc.get("blocks"), list):
        return []
    return [b for b in doc["blocks"] if isinstance(b, dict)]


def _block_items(block: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = block.get("items")
    if not isinstance(items, list):
        return []
    return [i for i in items if isinstance(i, dict)]


class PayloadValidator:
    def __init__(self, catalog: ExerciseCatalog):
        self.catalog = catalog

    def validate(self, doc: Any, expected_date: Optional[str] = None) -> ValidationResult:
        errors: List[str] = []

        payload = self._check_schema(doc, errors)
        self._check_cardinality(doc, errors)
        self._check_ids_exist(doc, errors)
        self._check_names_match_ids(doc, errors)

        if expected_date and isinstance(doc, dict) and isinstance(doc.get("date"), str):
            if doc["date"] != expected_date:
                errors.append(f"date {doc['date']} does not match requested day {expected_date}")

        if errors:
            logger.info(f"Workout payload rejected with {len(errors)} error(s): {errors}")
        return ValidationResult(ok=not errors, errors=errors, payload=payload if not errors else None)

    def _check_schema(self, doc: Any, errors: List[str]) -> Optional[Dict[str, Any]]:
        try:
            model = WorkoutPayloadDoc.model_validate(doc)
        except PydanticValidationError as e:
            for err in e.errors():
                loc = ".".join(str(p) for p in err.get("loc", ()))
                errors.append(f"{loc or 'payload'}: {err.get('msg')}")
            return None
        return model.model_dump(exclude_none=True)

    def _check_cardinality(self, doc: Any, errors: List[str]) -> None:
        blocks = _blocks(doc)
        by_type: Dict[str, List[Dict[str, Any]]] = {}
        for block in blocks:
            by_type.setdefault(block.get("type"), []).append(block)

        for block_type in REQUIRED_BLOCK_TYPES:
            found = by_type.get(block_type, [])
            if len(found) != 1:
                errors.append(f"expected exactly 1 {block_type} block, got {len(found)}")
                continue
            count = len(_block_items(found[0]))
            if block_type == "main":
                if not MAIN_BLOCK_MIN_ITEMS <= count <= MAIN_BLOCK_MAX_ITEMS:
                    errors.append(
                        f"main block must have {MAIN_BLOCK_MIN_ITEMS}-{MAIN_BLOCK_MAX_ITEMS} items, got {count}"
                    )
            elif count < 1:
                errors.append(f"{block_type} block must have at least 1 item")

    def _check_ids_exist(self, doc: Any, errors: List[str]) -> None:
        ids = [
            item["exercise_id"]
            for block in _blocks(doc)
            for item in _block_items(block)
            if _is_int(item.get("exercise_id"))
        ]
        missing = sorted(set(ids) - self.catalog.existing_ids(ids))
        if missing:
            errors.append(f"unknown exercise_id(s): {', '.join(str(i) for i in missing)}")

    def _check_names_match_ids(self, doc: Any, errors: List[str]) -> None:
        for block in _blocks(doc):
            for item in _block_items(block):
                name = item.get("name")
                exercise_id = item.get("exercise_id")
                if not isinstance(name, str) or not name or not _is_int(exercise_id):
                    continue
                try:
                    resolved = self.catalog.resolve(name)
                except ExerciseNotFoundError:
                    errors.append(f"item '{name}' does not resolve to a catalog exercise")
                    continue
                if resolved != exercise_id:
                    errors.append(f"item '{name}' has exercise_id {exercise_id} but its name resolves to {resolved}")

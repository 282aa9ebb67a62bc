"""
Exercise Catalog

Canonical exercise registry plus the resolver that maps free-text exercise
names (as written by the language model) to catalog ids.

Resolution runs an ordered list of match strategies against a snapshot of
the catalog taken in ascending id order; the first strategy that returns an
id wins. When the exercises table cannot be read, the same strategies run
against the built-in seed registry instead.

Usage:
    catalog = ExerciseCatalog.load(SessionLocal, RetryPolicy.from_settings())
    exercise_id = catalog.resolve("press ups")
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy.orm import Session

from core.retry import RetryPolicy
from models import Exercise
from services.exercise_seed import SEED_EXERCISES
from services.workout_errors import ExerciseNotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[-_/]+")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_exercise_name(name: str) -> str:
    """
    Lowercase, turn - _ / into spaces, strip other punctuation, collapse whitespace.

    "Push-Ups" -> "push ups", "Child's Pose" -> "childs pose"
    """
    if not name:
        return ""
    text = _SEPARATORS.sub(" ", name.strip().lower())
    text = _PUNCTUATION.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def to_slug(name: str) -> str:
    """Kebab-case slug used as the catalog upsert key."""
    return normalize_exercise_name(name).replace(" ", "-")


def _compact(normalized: str) -> str:
    return normalized.replace(" ", "")


@dataclass(frozen=True)
class CatalogEntry:
    id: int
    slug: str
    name: str
    aliases: tuple = ()
    body_part: Optional[str] = None
    equipment: tuple = ()
    pattern: Optional[str] = None
    is_unilateral: bool = False

    @classmethod
    def from_model(cls, exercise: Exercise) -> "CatalogEntry":
        return cls(
            id=exercise.id,
            slug=exercise.slug,
            name=exercise.name,
            aliases=tuple(exercise.aliases or ()),
            body_part=exercise.body_part,
            equipment=tuple(exercise.equipment or ()),
            pattern=exercise.pattern,
            is_unilateral=bool(exercise.is_unilateral),
        )

    @classmethod
    def from_dict(cls, data: Dict) -> "CatalogEntry":
        return cls(
            id=data["id"],
            slug=data.get("slug") or to_slug(data["name"]),
            name=data["name"],
            aliases=tuple(data.get("aliases") or ()),
            body_part=data.get("body_part"),
            equipment=tuple(data.get("equipment") or ()),
            pattern=data.get("pattern"),
            is_unilateral=bool(data.get("is_unilateral", False)),
        )

    @property
    def normalized_name(self) -> str:
        return normalize_exercise_name(self.name)

    @property
    def normalized_aliases(self) -> List[str]:
        return [a for a in (normalize_exercise_name(alias) for alias in self.aliases) if a]


# =============================================================================
# Match strategies
# =============================================================================

class MatchStrategy:
    """One resolution rule. `match` returns an entry id or None."""

    name = "base"

    def match(self, normalized: str, entries: Sequence[CatalogEntry]) -> Optional[int]:
        raise NotImplementedError


class ExactNameStrategy(MatchStrategy):
    """Normalized input equals a normalized entry name, with or without spaces."""

    name = "exact"

    def match(self, normalized: str, entries: Sequence[CatalogEntry]) -> Optional[int]:
        compact = _compact(normalized)
        for entry in entries:
            entry_name = entry.normalized_name
            if normalized == entry_name or compact == _compact(entry_name):
                return entry.id
        return None


class AliasContainmentStrategy(MatchStrategy):
    """Normalized input is contained in one of the entry's normalized aliases."""

    name = "alias"

    def match(self, normalized: str, entries: Sequence[CatalogEntry]) -> Optional[int]:
        compact = _compact(normalized)
        for entry in entries:
            for alias in entry.normalized_aliases:
                if normalized in alias or compact in _compact(alias):
                    return entry.id
        return None


class FuzzySubstringStrategy(MatchStrategy):
    """Normalized input is a substring of an entry name, or contains one."""

    name = "fuzzy"

    def match(self, normalized: str, entries: Sequence[CatalogEntry]) -> Optional[int]:
        for entry in entries:
            entry_name = entry.normalized_name
            if not entry_name:
                continue
            if normalized in entry_name or entry_name in normalized:
                return entry.id
        return None


DEFAULT_STRATEGIES: tuple = (
    ExactNameStrategy(),
    AliasContainmentStrategy(),
    FuzzySubstringStrategy(),
)


def seed_entries() -> List[CatalogEntry]:
    return sorted((CatalogEntry.from_dict(d) for d in SEED_EXERCISES), key=lambda e: e.id)


# =============================================================================
# Catalog
# =============================================================================

class ExerciseCatalog:
    """
    Read-only snapshot of the exercise catalog with name resolution.

    A snapshot is taken once per generation run so every lookup in that run
    sees the same entries.
    """

    def __init__(
        self,
        entries: Iterable[CatalogEntry],
        strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
        using_fallback: bool = False,
    ):
        self._entries = sorted(entries, key=lambda e: e.id)
        self._by_id = {e.id: e for e in self._entries}
        self.strategies = list(strategies)
        self.using_fallback = using_fallback

    @classmethod
    def load(
        cls,
        session_factory: Callable[[], Session],
        retry_policy: RetryPolicy,
        strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
    ) -> "ExerciseCatalog":
        """Snapshot the exercises table; fall back to the seed registry if unreachable."""

        def _read() -> List[CatalogEntry]:
            session = session_factory()
            try:
                rows = session.query(Exercise).order_by(Exercise.id.asc()).all()
                return [CatalogEntry.from_model(row) for row in rows]
            finally:
                session.close()

        try:
            entries = retry_policy.call(_read, operation="exercises.load")
        except StoreUnavailableError as e:
            logger.warning(f"Exercise catalog unavailable, using seed registry: {e.error_reason}")
            return cls(seed_entries(), strategies=strategies, using_fallback=True)

        logger.debug(f"Loaded exercise catalog snapshot with {len(entries)} entries")
        return cls(entries, strategies=strategies)

    def entries(self) -> List[CatalogEntry]:
        return list(self._entries)

    def resolve(self, name: str) -> int:
        """Map a free-text exercise name to a catalog id, or raise ExerciseNotFoundError."""
        normalized = normalize_exercise_name(name)
        if normalized:
            for strategy in self.strategies:
                exercise_id = strategy.match(normalized, self._entries)
                if exercise_id is not None:
                    logger.debug(f"Resolved exercise '{name}' -> {exercise_id} via {strategy.name}")
                    return exercise_id
        logger.info(f"Exercise not found: '{name}' (normalized: '{normalized}')")
        raise ExerciseNotFoundError([name])

    def resolve_many(self, names: Iterable[str]) -> Dict[str, int]:
        """Resolve every name; one ExerciseNotFoundError lists all names that failed."""
        resolved: Dict[str, int] = {}
        missing: List[str] = []
        for name in names:
            if name in resolved or name in missing:
                continue
            try:
                resolved[name] = self.resolve(name)
            except ExerciseNotFoundError:
                missing.append(name)
        if missing:
            raise ExerciseNotFoundError(missing)
        return resolved

    def existing_ids(self, ids: Iterable[int]) -> Set[int]:
        return {i for i in ids if i in self._by_id}

    def filter_by_equipment(self, equipment: Iterable[str]) -> List[CatalogEntry]:
        """
        Entries usable with the given equipment.

        Bodyweight is always available, and entries that list no equipment
        need none.
        """
        available = {normalize_exercise_name(e) for e in equipment if e}
        available.add("bodyweight")
        result = []
        for entry in self._entries:
            needed = {normalize_exercise_name(e) for e in entry.equipment if e}
            if not needed or needed & available:
                result.append(entry)
        return result

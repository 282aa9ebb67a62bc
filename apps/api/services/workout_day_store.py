"""
Workout Day Store

Persistence for the per-(user, date) workout state machine on the
workout_days table.

Mutual exclusion comes from the (user_id, date) unique constraint: a claim
is one INSERT ... ON CONFLICT DO UPDATE whose update only fires when the
existing row is not already ready or generating. A claimer whose statement
returns no row lost the race.

Every operation runs through the shared RetryPolicy. When a write still
fails after the last attempt the row is kept in this instance's in-memory
fallback so status reads keep working for the life of the process; the
returned record is marked durable=False. Reads consult the fallback first,
and the next successful durable write for a key drops its fallback entry.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.retry import RetryPolicy
from models import WorkoutDay
from services.workout_errors import StoreUnavailableError

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_GENERATING = "generating"
STATUS_READY = "ready"
STATUS_ERROR = "error"

# A claim never overwrites a row in one of these states
ACTIVE_STATUSES = (STATUS_READY, STATUS_GENERATING)

# Rows in these states only change on a new explicit request
TERMINAL_STATUSES = (STATUS_READY, STATUS_ERROR)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WorkoutDayRecord:
    user_id: str
    date: str
    status: str
    payload: Optional[Dict[str, Any]] = None
    id: Optional[int] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    durable: bool = True

    @classmethod
    def from_model(cls, row: WorkoutDay) -> "WorkoutDayRecord":
        return cls(
            id=row.id,
            user_id=row.user_id,
            date=row.date,
            status=row.status,
            payload=row.payload_json,
            completed_at=row.completed_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date,
            "status": self.status,
            "payload": self.payload,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "durable": self.durable,
        }


class WorkoutDayStore:
    def __init__(self, session_factory: Callable[[], Session], retry_policy: RetryPolicy):
        self._session_factory = session_factory
        self._retry = retry_policy
        self._fallback: Dict[Tuple[str, str], WorkoutDayRecord] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, user_id: str, day: str) -> Optional[WorkoutDayRecord]:
        """Current row for (user_id, day). Raises StoreUnavailableError if unreadable."""
        with self._lock:
            cached = self._fallback.get((user_id, day))
        if cached is not None:
            return cached

        def _read():
            with self._session() as session:
                row = (
                    session.query(WorkoutDay)
                    .filter(WorkoutDay.user_id == user_id, WorkoutDay.date == day)
                    .first()
                )
                return WorkoutDayRecord.from_model(row) if row else None

        return self._retry.call(_read, operation="workout_days.get")

    def get_many(self, user_id: str, days: Iterable[str]) -> Dict[str, WorkoutDayRecord]:
        """Rows for the given dates keyed by date; missing dates are absent."""
        days = list(days)

        def _read():
            with self._session() as session:
                rows = (
                    session.query(WorkoutDay)
                    .filter(WorkoutDay.user_id == user_id, WorkoutDay.date.in_(days))
                    .all()
                )
                return {row.date: WorkoutDayRecord.from_model(row) for row in rows}

        try:
            result = self._retry.call(_read, operation="workout_days.get_many")
        except StoreUnavailableError:
            result = {}
            if not self._has_fallback(user_id, days):
                raise

        with self._lock:
            for day in days:
                cached = self._fallback.get((user_id, day))
                if cached is not None:
                    result[day] = cached
        return result

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def claim(self, user_id: str, day: str, status: str) -> Optional[WorkoutDayRecord]:
        """
        Move (user_id, day) into `status` (pending or generating) unless it is
        already ready or generating.

        Returns the claimed record, or None when another claim holds the key.
        """
        now = _utcnow()
        values = {"status": status, "payload_json": None, "completed_at": None, "updated_at": now}

        def _write():
            with self._session() as session:
                row_id = self._upsert(session, user_id, day, values, now, only_if_idle=True)
                if row_id is None:
                    session.rollback()
                    return None
                row = session.get(WorkoutDay, row_id)
                record = WorkoutDayRecord.from_model(row)
                session.commit()
                return record

        try:
            record = self._retry.call(_write, operation="workout_days.claim")
        except StoreUnavailableError:
            return self._fallback_claim(user_id, day, status, now)

        self._drop_fallback(user_id, day)
        if record is None:
            logger.info(f"Claim for {user_id}/{day} lost: row already active")
        else:
            logger.info(f"Claimed workout day {user_id}/{day} as {status}")
        return record

    def mark_ready(self, user_id: str, day: str, payload: Dict[str, Any]) -> WorkoutDayRecord:
        now = _utcnow()
        values = {"status": STATUS_READY, "payload_json": payload, "completed_at": now, "updated_at": now}
        return self._finalize(user_id, day, values, now)

    def mark_error(self, user_id: str, day: str, error_reason: str) -> WorkoutDayRecord:
        now = _utcnow()
        values = {
            "status": STATUS_ERROR,
            "payload_json": {"error_reason": error_reason},
            "completed_at": None,
            "updated_at": now,
        }
        return self._finalize(user_id, day, values, now)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _session(self) -> Session:
        return self._session_factory()

    def _finalize(self, user_id: str, day: str, values: Dict[str, Any], now: datetime) -> WorkoutDayRecord:
        def _write():
            with self._session() as session:
                row_id = self._upsert(session, user_id, day, values, now, only_if_idle=False)
                row = session.get(WorkoutDay, row_id)
                record = WorkoutDayRecord.from_model(row)
                session.commit()
                return record

        try:
            record = self._retry.call(_write, operation=f"workout_days.mark_{values['status']}")
        except StoreUnavailableError:
            logger.error(f"Keeping {user_id}/{day} ({values['status']}) in memory, store unavailable")
            return self._fallback_write(user_id, day, values, now)

        self._drop_fallback(user_id, day)
        logger.info(f"Workout day {user_id}/{day} -> {values['status']}")
        return record

    def _upsert(
        self,
        session: Session,
        user_id: str,
        day: str,
        values: Dict[str, Any],
        now: datetime,
        only_if_idle: bool,
    ) -> Optional[int]:
        """INSERT ... ON CONFLICT (user_id, date) DO UPDATE; returns the row id or None."""
        table = WorkoutDay.__table__
        dialect = session.get_bind().dialect.name

        if dialect in ("postgresql", "sqlite"):
            insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
            stmt = insert(table).values(user_id=user_id, date=day, created_at=now, **values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.user_id, table.c.date],
                set_=values,
                where=table.c.status.notin_(ACTIVE_STATUSES) if only_if_idle else None,
            ).returning(table.c.id)
            return session.execute(stmt).scalar_one_or_none()

        # Other backends: row lock, then update or insert
        row = (
            session.query(WorkoutDay)
            .filter(WorkoutDay.user_id == user_id, WorkoutDay.date == day)
            .with_for_update()
            .first()
        )
        if row is None:
            row = WorkoutDay(user_id=user_id, date=day, created_at=now, **values)
            session.add(row)
            try:
                session.flush()
            except IntegrityError:
                session.rollback()
                return None
            return row.id
        if only_if_idle and row.status in ACTIVE_STATUSES:
            return None
        for key, value in values.items():
            setattr(row, key, value)
        session.flush()
        return row.id

    def _fallback_claim(self, user_id: str, day: str, status: str, now: datetime) -> Optional[WorkoutDayRecord]:
        key = (user_id, day)
        with self._lock:
            existing = self._fallback.get(key)
            if existing is not None and existing.status in ACTIVE_STATUSES:
                return None
            record = WorkoutDayRecord(
                user_id=user_id,
                date=day,
                status=status,
                created_at=existing.created_at if existing else now,
                updated_at=now,
                durable=False,
            )
            self._fallback[key] = record
        logger.warning(f"Claimed workout day {user_id}/{day} as {status} in memory, store unavailable")
        return record

    def _fallback_write(self, user_id: str, day: str, values: Dict[str, Any], now: datetime) -> WorkoutDayRecord:
        key = (user_id, day)
        with self._lock:
            existing = self._fallback.get(key)
            record = WorkoutDayRecord(
                id=existing.id if existing else None,
                user_id=user_id,
                date=day,
                status=values["status"],
                payload=values["payload_json"],
                completed_at=values["completed_at"],
                created_at=existing.created_at if existing else now,
                updated_at=now,
                durable=False,
            )
            self._fallback[key] = record
        return record

    def _drop_fallback(self, user_id: str, day: str) -> None:
        with self._lock:
            self._fallback.pop((user_id, day), None)

    def _has_fallback(self, user_id: str, days: Iterable[str]) -> bool:
        with self._lock:
            return any((user_id, day) in self._fallback for day in days)

"""
Workout Result Cache

Read-through cache in front of WorkoutDayStore for the two hot views:
- today: one day's row (1-hour TTL)
- week: the seven rows of a Monday-Sunday week (6-hour TTL)

A miss is filled from the store by the caller; the cache never triggers
generation. The orchestrator calls invalidate_day() whenever a row changes
so neither view can outlive the state it shows.

Usage:
    cache = WorkoutResultCache(get_redis_client())
    cache.set_today(user_id, "2025-01-06", row_dict)
    cache.invalidate_day(user_id, date(2025, 1, 6))
"""
import json
import logging
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional

from redis.exceptions import RedisError

from core.config import settings

logger = logging.getLogger(__name__)


def week_start_for(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())


class WorkoutResultCache:
    # Cache TTLs in seconds
    TTL_TODAY = 3600       # 1 hour
    TTL_WEEK = 6 * 3600    # 6 hours

    def __init__(self, redis=None, ttl_today: Optional[int] = None, ttl_week: Optional[int] = None):
        """
        Args:
            redis: Redis client (optional, uses in-process dict if not provided)
        """
        self.redis = redis
        self.ttl_today = ttl_today or settings.CACHE_TTL_WORKOUT_TODAY or self.TTL_TODAY
        self.ttl_week = ttl_week or settings.CACHE_TTL_WORKOUT_WEEK or self.TTL_WEEK
        self._local_cache: Dict[str, Any] = {}
        self._local_expiry: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    # ========== Keys ==========

    @staticmethod
    def today_key(user_id: str, day: str) -> str:
        return f"workout:{user_id}:today:{day}"

    @staticmethod
    def week_key(user_id: str, week_start: str) -> str:
        return f"workout:{user_id}:week:{week_start}"

    # ========== Today ==========

    def get_today(self, user_id: str, day: str) -> Optional[dict]:
        return self._get(self.today_key(user_id, day))

    def set_today(self, user_id: str, day: str, row: dict):
        self._set(self.today_key(user_id, day), row, self.ttl_today)

    # ========== Week ==========

    def get_week(self, user_id: str, week_start: str) -> Optional[dict]:
        return self._get(self.week_key(user_id, week_start))

    def set_week(self, user_id: str, week_start: str, week: dict):
        self._set(self.week_key(user_id, week_start), week, self.ttl_week)

    # ========== Invalidation ==========

    def invalidate_day(self, user_id: str, day: date):
        """Drop the day's today entry and the entry of the week containing it."""
        self._delete(self.today_key(user_id, day.isoformat()))
        self._delete(self.week_key(user_id, week_start_for(day).isoformat()))
        logger.debug(f"Invalidated workout cache for {user_id}/{day.isoformat()}")

    # ========== Internal Methods ==========

    def _get(self, key: str) -> Optional[Any]:
        if self.redis:
            try:
                value = self.redis.get(key)
                if value:
                    return json.loads(value)
            except (RedisError, ValueError) as e:
                logger.warning(f"Cache get error for {key}: {e}")
            return None

        with self._lock:
            if key in self._local_cache:
                expiry = self._local_expiry.get(key)
                if expiry is None or expiry > datetime.now(timezone.utc):
                    return self._local_cache[key]
                # Expired
                del self._local_cache[key]
                self._local_expiry.pop(key, None)
        return None

    def _set(self, key: str, value: Any, ttl: Optional[int]):
        if self.redis:
            try:
                serialized = json.dumps(value, default=str)
                if ttl:
                    self.redis.setex(key, ttl, serialized)
                else:
                    self.redis.set(key, serialized)
            except (RedisError, TypeError) as e:
                logger.warning(f"Cache set error for {key}: {e}")
            return

        with self._lock:
            self._local_cache[key] = value
            self._local_expiry[key] = datetime.now(timezone.utc) + timedelta(seconds=ttl) if ttl else None

    def _delete(self, key: str):
        if self.redis:
            try:
                self.redis.delete(key)
            except RedisError as e:
                logger.warning(f"Cache delete error for {key}: {e}")
            return

        with self._lock:
            self._local_cache.pop(key, None)
            self._local_expiry.pop(key, None)

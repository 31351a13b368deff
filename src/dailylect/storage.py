import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Optional

import redis

from .config import settings
from .database import get_db_connection, init_db
from .errors import StorageUnavailable, ValidationError
from .models import LoginDay, QuizResult

logger = logging.getLogger(__name__)


# --- Persistence collaborator ---
class ProgressStorage(ABC):
    """User-scoped store for the two record kinds: login days and quiz results.

    Login days are insert-if-absent on (user_id, date); quiz results are
    append-only. Implementations raise ``StorageUnavailable`` when the
    backend cannot be reached.
    """

    @abstractmethod
    def add_login_day_if_absent(self, user_id: str, login_day: LoginDay) -> bool:
        """Returns True if a record was created, False if one already existed."""

    @abstractmethod
    def list_login_days(self, user_id: str) -> List[LoginDay]:
        pass

    @abstractmethod
    def append_quiz_result(self, result: QuizResult) -> None:
        """Raises ``ValidationError`` if the quiz id was already stored for the user."""

    @abstractmethod
    def list_quiz_results(self, user_id: str) -> List[QuizResult]:
        """Returns results in insertion order."""


class MemoryStorage(ProgressStorage):
    """Process-local storage, used for tests and single-process demos."""

    def __init__(self):
        self._lock = threading.Lock()
        self._login_days: Dict[str, Dict[str, LoginDay]] = defaultdict(dict)
        self._results: Dict[str, List[QuizResult]] = defaultdict(list)

    def add_login_day_if_absent(self, user_id: str, login_day: LoginDay) -> bool:
        key = login_day.date.isoformat()
        with self._lock:
            days = self._login_days[user_id]
            if key in days:
                return False
            days[key] = login_day
            return True

    def list_login_days(self, user_id: str) -> List[LoginDay]:
        with self._lock:
            return list(self._login_days.get(user_id, {}).values())

    def append_quiz_result(self, result: QuizResult) -> None:
        with self._lock:
            results = self._results[result.user_id]
            if any(r.quiz_id == result.quiz_id for r in results):
                raise ValidationError(f"Quiz {result.quiz_id} already recorded")
            results.append(result)

    def list_quiz_results(self, user_id: str) -> List[QuizResult]:
        with self._lock:
            return list(self._results.get(user_id, []))


class SQLiteStorage(ProgressStorage):
    """Embedded storage backed by the SQLite database file."""

    def __init__(self, db_path: Optional[str] = None):
        try:
            self.db_path = init_db(db_path)
        except sqlite3.Error as e:
            logger.error(f"Could not initialize database {db_path}: {e}")
            raise StorageUnavailable(str(e)) from e

    def _connect(self):
        return get_db_connection(self.db_path)

    def add_login_day_if_absent(self, user_id: str, login_day: LoginDay) -> bool:
        try:
            conn = self._connect()
            try:
                with conn:
                    cursor = conn.execute(
                        "INSERT OR IGNORE INTO login_days (user_id, date, timestamp) "
                        "VALUES (?, ?, ?)",
                        (
                            user_id,
                            login_day.date.isoformat(),
                            login_day.timestamp.isoformat(),
                        ),
                    )
                return cursor.rowcount == 1
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to record login for {user_id}: {e}")
            raise StorageUnavailable(str(e)) from e

    def list_login_days(self, user_id: str) -> List[LoginDay]:
        try:
            conn = self._connect()
            try:
                rows = conn.execute(
                    "SELECT date, timestamp FROM login_days WHERE user_id = ?",
                    (user_id,),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to list login days for {user_id}: {e}")
            raise StorageUnavailable(str(e)) from e
        return [LoginDay(date=row["date"], timestamp=row["timestamp"]) for row in rows]

    def append_quiz_result(self, result: QuizResult) -> None:
        try:
            conn = self._connect()
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO quiz_results (quiz_id, user_id, completed_at, payload) "
                        "VALUES (?, ?, ?, ?)",
                        (
                            result.quiz_id,
                            result.user_id,
                            result.completed_at.isoformat(),
                            result.model_dump_json(by_alias=True),
                        ),
                    )
            finally:
                conn.close()
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Quiz {result.quiz_id} already recorded") from e
        except sqlite3.Error as e:
            logger.error(f"Failed to save quiz {result.quiz_id}: {e}")
            raise StorageUnavailable(str(e)) from e

    def list_quiz_results(self, user_id: str) -> List[QuizResult]:
        try:
            conn = self._connect()
            try:
                rows = conn.execute(
                    "SELECT payload FROM quiz_results WHERE user_id = ? ORDER BY id",
                    (user_id,),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to list quiz results for {user_id}: {e}")
            raise StorageUnavailable(str(e)) from e
        return [QuizResult.model_validate_json(row["payload"]) for row in rows]


class RedisStorage(ProgressStorage):
    """Remote storage: one hash of login days and one list of results per user."""

    KEY_PREFIX = "dailylect"

    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = None):
        self.client = client or redis.Redis.from_url(
            url or settings.REDIS_URL,
            socket_timeout=settings.REDIS_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.REDIS_TIMEOUT_SECONDS,
            decode_responses=True,
        )

    def _key(self, kind: str, user_id: str) -> str:
        return f"{self.KEY_PREFIX}:{kind}:{user_id}"

    def add_login_day_if_absent(self, user_id: str, login_day: LoginDay) -> bool:
        try:
            created = self.client.hsetnx(
                self._key("login_days", user_id),
                login_day.date.isoformat(),
                login_day.model_dump_json(by_alias=True),
            )
        except redis.exceptions.RedisError as e:
            logger.error(f"Failed to record login for {user_id}: {e}")
            raise StorageUnavailable(str(e)) from e
        return bool(created)

    def list_login_days(self, user_id: str) -> List[LoginDay]:
        try:
            raw = self.client.hvals(self._key("login_days", user_id))
        except redis.exceptions.RedisError as e:
            logger.error(f"Failed to list login days for {user_id}: {e}")
            raise StorageUnavailable(str(e)) from e
        return [LoginDay.model_validate_json(item) for item in raw]

    def append_quiz_result(self, result: QuizResult) -> None:
        ids_key = self._key("quiz_ids", result.user_id)

        def _append(pipe):
            if pipe.sismember(ids_key, result.quiz_id):
                raise ValidationError(f"Quiz {result.quiz_id} already recorded")
            pipe.multi()
            pipe.sadd(ids_key, result.quiz_id)
            pipe.rpush(
                self._key("quiz_results", result.user_id),
                result.model_dump_json(by_alias=True),
            )

        try:
            self.client.transaction(_append, ids_key)
        except redis.exceptions.RedisError as e:
            logger.error(f"Failed to save quiz {result.quiz_id}: {e}")
            raise StorageUnavailable(str(e)) from e

    def list_quiz_results(self, user_id: str) -> List[QuizResult]:
        try:
            raw = self.client.lrange(self._key("quiz_results", user_id), 0, -1)
        except redis.exceptions.RedisError as e:
            logger.error(f"Failed to list quiz results for {user_id}: {e}")
            raise StorageUnavailable(str(e)) from e
        return [QuizResult.model_validate_json(item) for item in raw]


def create_storage(backend: Optional[str] = None) -> ProgressStorage:
    """Factory selecting the storage backend named in settings."""
    backend = backend or settings.STORAGE_BACKEND
    if backend == "memory":
        return MemoryStorage()
    if backend == "redis":
        return RedisStorage()
    if backend != "sqlite":
        logger.warning(f"Unknown storage backend {backend!r}, using sqlite")
    return SQLiteStorage()

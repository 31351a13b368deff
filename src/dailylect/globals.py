import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel

from .catalog import WordCatalog
from .config import settings
from .ledger import LoginLedger
from .models import AnswerRecord, QuizQuestion, QuizResult
from .progress import ProgressService
from .results import QuizResultStore
from .storage import ProgressStorage, create_storage


class QuizSession(BaseModel):
    user_id: str
    quiz_id: str
    questions: List[QuizQuestion]
    answers: List[AnswerRecord] = []
    created_at: datetime
    mode: str = "standard"
    result: Optional[QuizResult] = None
    saved: bool = False

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now - self.created_at > timedelta(
            minutes=settings.SESSION_TIMEOUT_MINUTES
        )


class QuizSessionStore:
    """In-progress quizzes keyed by session id, shared across worker threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, QuizSession] = {}

    def start(self, session: QuizSession) -> None:
        """Adds a session, dropping expired ones and the user's previous quiz."""
        with self._lock:
            stale = [
                sid
                for sid, s in self._sessions.items()
                if s.user_id == session.user_id or s.is_expired()
            ]
            for sid in stale:
                del self._sessions[sid]
            self._sessions[session.quiz_id] = session

    def get_active(
        self, session_id: Optional[str], user_id: Optional[str]
    ) -> Optional[QuizSession]:
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.user_id != user_id:
                return None
            if session.is_expired():
                self._sessions.pop(session_id, None)
                return None
            return session

    def discard(self, session_id: Optional[str]) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id) -> bool:
        return session_id in self._sessions


@dataclass
class Services:
    catalog: WordCatalog
    storage: ProgressStorage
    ledger: LoginLedger
    results: QuizResultStore
    progress: ProgressService
    sessions: QuizSessionStore = field(default_factory=QuizSessionStore)


def build_services(
    storage: Optional[ProgressStorage] = None, catalog: Optional[WordCatalog] = None
) -> Services:
    if catalog is None:
        catalog = WordCatalog(settings.CATALOG_DIR)
    if storage is None:
        storage = create_storage()
    ledger = LoginLedger(storage)
    results = QuizResultStore(storage)
    return Services(
        catalog=catalog,
        storage=storage,
        ledger=ledger,
        results=results,
        progress=ProgressService(ledger, results, catalog),
    )

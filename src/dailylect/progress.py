import math
from datetime import date
from typing import Dict, Iterable, List, Optional

from .catalog import WordCatalog
from .config import settings
from .ledger import LoginLedger
from .models import LearnedWord, LoginDay, QuizAccess, QuizResult, UserProgress
from .results import QuizResultStore
from .streak import DayLike, current_streak, quiz_access


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_progress(
    login_days: Iterable[DayLike],
    results: List[QuizResult],
    today: Optional[date] = None,
) -> UserProgress:
    """Summarizes a user's quiz results and login days.

    ``results`` are expected in insertion order; ties on ``completed_at``
    keep that order in ``recent_quizzes``.
    """
    streak = current_streak(login_days, today)
    if not results:
        return UserProgress(current_streak=streak)

    per_quiz = [round_half_up(r.percentage) for r in results]
    average_score = round_half_up(sum(per_quiz) / len(per_quiz))
    best_score = round_half_up(max(r.percentage for r in results))

    learned_ids = {
        answer.question_id
        for result in results
        for answer in result.answers
        if answer.is_correct
    }

    recent = sorted(results, key=lambda r: r.completed_at, reverse=True)

    return UserProgress(
        total_quizzes_taken=len(results),
        average_score=average_score,
        best_score=best_score,
        total_words_learned=len(learned_ids),
        current_streak=streak,
        recent_quizzes=recent[: settings.RECENT_QUIZ_LIMIT],
    )


def learned_words(results: List[QuizResult], catalog: WordCatalog) -> List[LearnedWord]:
    """Words answered correctly at least once, newest first.

    Each word is dated by the earliest quiz in which it was answered
    correctly. Ids no longer in the catalog are skipped.
    """
    first_learned: Dict[str, LearnedWord] = {}
    for result in sorted(results, key=lambda r: r.completed_at):
        for answer in result.answers:
            if not answer.is_correct or answer.question_id in first_learned:
                continue
            word = catalog.get_word(answer.question_id)
            if word is None:
                continue
            dialect = catalog.get_dialect(word.dialect_id)
            first_learned[word.id] = LearnedWord(
                word_id=word.id,
                word=word.word,
                dialect_id=word.dialect_id,
                dialect_name=dialect.name if dialect else None,
                translation=answer.correct_answer,
                learned_at=result.completed_at,
            )
    return sorted(first_learned.values(), key=lambda w: w.learned_at, reverse=True)


class ProgressService:
    """Fetches a user's complete ledger and results, then computes views."""

    def __init__(
        self, ledger: LoginLedger, result_store: QuizResultStore, catalog: WordCatalog
    ):
        self.ledger = ledger
        self.result_store = result_store
        self.catalog = catalog

    def get_progress(self, user_id: str, today: Optional[date] = None) -> UserProgress:
        login_days: List[LoginDay] = self.ledger.list_login_days(user_id)
        results = self.result_store.list_results(user_id)
        return compute_progress(login_days, results, today)

    def get_access(self, user_id: str) -> QuizAccess:
        return quiz_access(self.ledger.list_login_days(user_id))

    def get_learned_words(self, user_id: str) -> List[LearnedWord]:
        return learned_words(self.result_store.list_results(user_id), self.catalog)

import logging
import random
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .catalog import WordCatalog
from .config import settings
from .errors import CatalogExhausted, ValidationError
from .models import AnswerRecord, QuizQuestion, QuizResult, Word

logger = logging.getLogger(__name__)

NUM_DISTRACTORS = 3


# --- Strategy Pattern: Quiz Generators ---
class QuizGenerator(ABC):
    """Abstract Base Class for different quiz generation strategies."""

    def __init__(self, catalog: WordCatalog, rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.rng = rng or random.Random()

    @abstractmethod
    def generate(self, count: int = settings.QUIZ_SIZE) -> List[QuizQuestion]:
        pass

    def _generate_options(self, word: Word, all_words: List[Word]) -> List[str]:
        """Correct translation plus distinct distractor translations, shuffled."""
        distractors = sorted(
            {w.translation for w in all_words if w.id != word.id}
            - {word.translation}
        )
        if len(distractors) < NUM_DISTRACTORS:
            raise CatalogExhausted(
                f"Only {len(distractors)} distinct distractors available for {word.id}"
            )

        options = [word.translation] + self.rng.sample(distractors, NUM_DISTRACTORS)
        self.rng.shuffle(options)
        return options


class RandomQuizGenerator(QuizGenerator):
    """Standard mode: Randomly selects N words from the whole catalog."""

    def generate(self, count: int = settings.QUIZ_SIZE) -> List[QuizQuestion]:
        if count < 0:
            raise ValidationError(f"Question count must not be negative, got {count}")
        word_list = self.catalog.get_words()
        if not word_list:
            return []
        if len(word_list) < count:
            logger.warning(
                f"Catalog has {len(word_list)} words, quiz truncated from {count}"
            )

        selected_words = self.rng.sample(word_list, min(count, len(word_list)))

        return [
            QuizQuestion(
                id=word.id,
                word=word,
                options=self._generate_options(word, word_list),
                correct_answer=word.translation,
            )
            for word in selected_words
        ]


class QuizFactory:
    """Factory to select the appropriate generator."""

    @staticmethod
    def create(
        mode: str, catalog: WordCatalog, rng: Optional[random.Random] = None
    ) -> QuizGenerator:
        if mode != "standard":
            logger.warning(f"Unknown quiz mode {mode!r}, using standard")
        return RandomQuizGenerator(catalog, rng)


# --- Grading ---
def validate_result(result: QuizResult) -> QuizResult:
    if result.total_questions <= 0:
        raise ValidationError("total_questions must be positive")
    if result.score < 0:
        raise ValidationError("score must not be negative")
    if result.score > result.total_questions:
        raise ValidationError("score exceeds total_questions")
    if not result.quiz_id or not result.user_id:
        raise ValidationError("quiz_id and user_id are required")
    return result


def grade_quiz(
    questions: List[QuizQuestion],
    answers: Dict[str, str],
    user_id: str,
    quiz_id: Optional[str] = None,
    completed_at: Optional[datetime] = None,
) -> QuizResult:
    """
    Grades ``answers`` (question id -> chosen option) by exact string match.

    Unanswered questions are recorded as incorrect with an empty answer.
    Grading is independent of persistence.
    """
    records = []
    for question in questions:
        user_answer = answers.get(question.id, "")
        records.append(
            AnswerRecord(
                question_id=question.id,
                user_answer=user_answer,
                correct_answer=question.correct_answer,
                is_correct=user_answer == question.correct_answer,
            )
        )

    result = QuizResult(
        quiz_id=quiz_id or str(uuid.uuid4()),
        user_id=user_id,
        score=sum(1 for r in records if r.is_correct),
        total_questions=len(questions),
        answers=records,
        completed_at=completed_at or datetime.now(timezone.utc),
    )
    return validate_result(result)

import datetime as dt
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Catalog ---
class Dialect(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    region: str
    color: str


class Word(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    dialect_id: str
    word: str
    translation: str
    pronunciation: str = ""
    example: str = ""
    example_translation: str = ""


# --- Ledger ---
class LoginDay(CamelModel):
    date: dt.date
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, value: datetime) -> datetime:
        return _as_utc(value)


# --- Quiz ---
class QuizQuestion(CamelModel):
    id: str
    word: Word
    options: List[str]
    correct_answer: str


class AnswerRecord(CamelModel):
    question_id: str
    user_answer: str
    correct_answer: str
    is_correct: bool


class QuizResult(CamelModel):
    quiz_id: str
    user_id: str
    score: int
    total_questions: int
    answers: List[AnswerRecord] = Field(default_factory=list)
    completed_at: datetime

    @field_validator("completed_at")
    @classmethod
    def _aware_completed_at(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def percentage(self) -> float:
        return 100 * self.score / self.total_questions


# --- Derived views ---
class QuizAccess(CamelModel):
    login_days: int
    has_quiz_access: bool
    days_until_access: int


class UserProgress(CamelModel):
    total_quizzes_taken: int = 0
    average_score: int = 0
    best_score: int = 0
    total_words_learned: int = 0
    current_streak: int = 0
    recent_quizzes: List[QuizResult] = Field(default_factory=list)


class LearnedWord(CamelModel):
    word_id: str
    word: str
    dialect_id: str
    dialect_name: Optional[str] = None
    translation: str
    learned_at: datetime


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are treated as UTC so results from any backend compare.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

from datetime import date, datetime, timezone

import fakeredis
import pytest

from dailylect.catalog import WordCatalog
from dailylect.config import settings
from dailylect.errors import StorageUnavailable
from dailylect.models import AnswerRecord, QuizResult
from dailylect.storage import MemoryStorage, RedisStorage, SQLiteStorage

TODAY = date(2024, 3, 15)

DIALECTS = [
    {"id": "cebuano", "name": "Cebuano", "region": "Central Visayas", "color": "#E4572E"},
    {"id": "ilocano", "name": "Ilocano", "region": "Ilocos Region", "color": "#17BEBB"},
]

WORDS = [
    {"id": "ceb-1", "dialect_id": "cebuano", "word": "Salamat", "translation": "Thank you"},
    {"id": "ceb-2", "dialect_id": "cebuano", "word": "Balay", "translation": "House"},
    {"id": "ceb-3", "dialect_id": "cebuano", "word": "Tubig", "translation": "Water"},
    {"id": "ceb-4", "dialect_id": "cebuano", "word": "Kaon", "translation": "Eat"},
    {"id": "ceb-5", "dialect_id": "cebuano", "word": "Gugma", "translation": "Love"},
    {"id": "ceb-6", "dialect_id": "cebuano", "word": "Adlaw", "translation": "Sun"},
    {"id": "ilo-1", "dialect_id": "ilocano", "word": "Agyamanak", "translation": "Thank you"},
    {"id": "ilo-2", "dialect_id": "ilocano", "word": "Balay", "translation": "House"},
    {"id": "ilo-3", "dialect_id": "ilocano", "word": "Danum", "translation": "Water"},
    {"id": "ilo-4", "dialect_id": "ilocano", "word": "Mangan", "translation": "Eat"},
    {"id": "ilo-5", "dialect_id": "ilocano", "word": "Ayat", "translation": "Love"},
    {"id": "ilo-6", "dialect_id": "ilocano", "word": "Init", "translation": "Sun"},
]


class FlakyStorage(MemoryStorage):
    """Memory storage whose writes (or reads) fail while ``failing`` is set."""

    def __init__(self, fail_reads=False):
        super().__init__()
        self.failing = True
        self.fail_reads = fail_reads

    def _check(self):
        if self.failing:
            raise StorageUnavailable("backend offline")

    def add_login_day_if_absent(self, user_id, login_day):
        self._check()
        return super().add_login_day_if_absent(user_id, login_day)

    def append_quiz_result(self, result):
        self._check()
        super().append_quiz_result(result)

    def list_login_days(self, user_id):
        if self.fail_reads:
            self._check()
        return super().list_login_days(user_id)

    def list_quiz_results(self, user_id):
        if self.fail_reads:
            self._check()
        return super().list_quiz_results(user_id)


def make_result(score, total, quiz_id="q", user_id="user-1", completed_at=None, correct_ids=()):
    answers = [
        AnswerRecord(
            question_id=qid,
            user_answer="x",
            correct_answer="x",
            is_correct=True,
        )
        for qid in correct_ids
    ]
    return QuizResult(
        quiz_id=quiz_id,
        user_id=user_id,
        score=score,
        total_questions=total,
        answers=answers,
        completed_at=completed_at or datetime(2024, 3, 1, tzinfo=timezone.utc),
    )


@pytest.fixture(autouse=True)
def _log_dir(tmp_path_factory, monkeypatch):
    monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path_factory.getbasetemp() / "log"))


@pytest.fixture
def catalog():
    return WordCatalog.from_records(DIALECTS, WORDS)


@pytest.fixture(params=["memory", "sqlite", "redis"])
def storage(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    if request.param == "sqlite":
        return SQLiteStorage(str(tmp_path / "db" / "test.db"))
    return RedisStorage(client=fakeredis.FakeRedis(decode_responses=True))

from datetime import datetime, timedelta, timezone

import pytest

from conftest import TODAY, FlakyStorage, make_result
from dailylect.errors import StorageUnavailable
from dailylect.ledger import LoginLedger
from dailylect.models import AnswerRecord
from dailylect.progress import (
    ProgressService,
    compute_progress,
    learned_words,
    round_half_up,
)
from dailylect.results import QuizResultStore
from dailylect.storage import MemoryStorage

BASE = datetime(2024, 3, 1, 12, tzinfo=timezone.utc)


def test_empty_inputs_give_zeroed_progress():
    progress = compute_progress([], [], today=TODAY)
    assert progress.model_dump() == {
        "total_quizzes_taken": 0,
        "average_score": 0,
        "best_score": 0,
        "total_words_learned": 0,
        "current_streak": 0,
        "recent_quizzes": [],
    }


def test_average_and_best_score():
    results = [make_result(3, 5, quiz_id="a"), make_result(4, 5, quiz_id="b")]
    progress = compute_progress([], results, today=TODAY)
    assert progress.total_quizzes_taken == 2
    assert progress.average_score == 70
    assert progress.best_score == 80


def test_scores_round_half_up():
    # 1/8 = 12.5% and 5/8 = 62.5%
    results = [make_result(1, 8, quiz_id="a"), make_result(5, 8, quiz_id="b")]
    progress = compute_progress([], results, today=TODAY)
    assert progress.best_score == 63
    assert progress.average_score == 38  # mean of 13 and 63


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_word_learned_once_across_sessions():
    results = [
        make_result(2, 10, quiz_id="a", correct_ids=["ceb-1", "ceb-2"]),
        make_result(2, 10, quiz_id="b", correct_ids=["ceb-1", "ilo-3"]),
    ]
    assert compute_progress([], results).total_words_learned == 3


def test_word_answered_wrong_then_right_counts():
    wrong = make_result(0, 1, quiz_id="a")
    wrong.answers.append(
        AnswerRecord(question_id="ceb-4", user_answer="Sun", correct_answer="Eat", is_correct=False)
    )
    right = make_result(1, 1, quiz_id="b", correct_ids=["ceb-4"])
    assert compute_progress([], [wrong]).total_words_learned == 0
    assert compute_progress([], [wrong, right]).total_words_learned == 1


def test_recent_quizzes_newest_first_limited_to_five():
    results = [
        make_result(i % 5, 5, quiz_id=f"q{i}", completed_at=BASE + timedelta(days=i))
        for i in [3, 0, 6, 1, 5, 2, 4]
    ]
    recent = compute_progress([], results).recent_quizzes
    assert [r.quiz_id for r in recent] == ["q6", "q5", "q4", "q3", "q2"]


def test_recent_quizzes_ties_keep_insertion_order():
    results = [make_result(1, 5, quiz_id=q, completed_at=BASE) for q in "abc"]
    recent = compute_progress([], results).recent_quizzes
    assert [r.quiz_id for r in recent] == ["a", "b", "c"]


def test_streak_is_included():
    days = {TODAY, TODAY - timedelta(days=1)}
    assert compute_progress(days, [], today=TODAY).current_streak == 2


def test_learned_words_dated_by_first_correct_answer(catalog):
    results = [
        make_result(1, 1, quiz_id="late", completed_at=BASE + timedelta(days=5), correct_ids=["ceb-1"]),
        make_result(2, 2, quiz_id="early", completed_at=BASE, correct_ids=["ceb-1", "ilo-2"]),
        make_result(2, 2, quiz_id="mid", completed_at=BASE + timedelta(days=2), correct_ids=["ilo-5", "gone"]),
    ]
    words = learned_words(results, catalog)

    # Same-day words keep the order they were first answered in.
    assert [w.word_id for w in words] == ["ilo-5", "ceb-1", "ilo-2"]
    by_id = {w.word_id: w for w in words}
    assert by_id["ceb-1"].learned_at == BASE
    assert by_id["ilo-5"].dialect_name == "Ilocano"
    assert by_id["ilo-5"].word == "Ayat"
    assert "gone" not in by_id


def test_service_combines_ledger_and_results(catalog):
    storage = MemoryStorage()
    ledger = LoginLedger(storage)
    store = QuizResultStore(storage)
    service = ProgressService(ledger, store, catalog)

    for n in range(3):
        ledger.record_login("user-1", TODAY - timedelta(days=n))
    store.save_result(make_result(4, 5, quiz_id="a", correct_ids=["ceb-1"]))

    progress = service.get_progress("user-1", today=TODAY)
    assert progress.current_streak == 3
    assert progress.best_score == 80
    assert service.get_access("user-1").days_until_access == 4
    assert [w.word_id for w in service.get_learned_words("user-1")] == ["ceb-1"]


def test_service_does_not_hide_storage_failures(catalog):
    storage = FlakyStorage(fail_reads=True)
    service = ProgressService(LoginLedger(storage), QuizResultStore(storage), catalog)
    with pytest.raises(StorageUnavailable):
        service.get_progress("user-1")

import logging
from typing import List

from .errors import StorageUnavailable
from .models import QuizResult
from .quiz import validate_result
from .storage import ProgressStorage

logger = logging.getLogger(__name__)


class QuizResultStore:
    """Append-only record of completed quiz attempts."""

    def __init__(self, storage: ProgressStorage):
        self.storage = storage

    def save_result(self, result: QuizResult) -> None:
        validate_result(result)
        try:
            self.storage.append_quiz_result(result)
        except StorageUnavailable:
            logger.error(
                f"Could not save quiz {result.quiz_id} for {result.user_id}; "
                "the result can be resubmitted"
            )
            raise
        logger.info(
            f"Saved quiz {result.quiz_id} for {result.user_id} "
            f"[{result.score}/{result.total_questions}]"
        )

    def list_results(self, user_id: str) -> List[QuizResult]:
        return self.storage.list_quiz_results(user_id)

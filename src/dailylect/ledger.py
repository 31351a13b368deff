import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from .models import LoginDay
from .storage import ProgressStorage

logger = logging.getLogger(__name__)


class LoginLedger:
    """Records one login per user per calendar day."""

    def __init__(self, storage: ProgressStorage):
        self.storage = storage

    def record_login(
        self,
        user_id: str,
        day: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        now = now or datetime.now(timezone.utc)
        day = day or date.today()
        created = self.storage.add_login_day_if_absent(
            user_id, LoginDay(date=day, timestamp=now)
        )
        if created:
            logger.info(f"Recorded login day {day.isoformat()} for {user_id}")
        return created

    def list_login_days(self, user_id: str) -> List[LoginDay]:
        return self.storage.list_login_days(user_id)

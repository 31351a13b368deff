import logging
from typing import Optional

from .database import get_db_connection


class SQLiteHandler(logging.Handler):
    """
    A logging handler that writes log records to the ``logs`` table.
    """

    def __init__(self, db_path: Optional[str] = None, level=logging.WARNING):
        super().__init__(level)
        self.db_path = db_path

    def emit(self, record):
        try:
            conn = get_db_connection(self.db_path)
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO logs (level, message) VALUES (?, ?)",
                        (record.levelname, self.format(record)),
                    )
            finally:
                conn.close()
        except Exception:
            self.handleError(record)

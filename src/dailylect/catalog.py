import logging
import os
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from .models import Dialect, Word

logger = logging.getLogger(__name__)

DIALECT_COLUMNS = ["id", "name", "region", "color"]
WORD_COLUMNS = ["id", "dialect_id", "word", "translation"]
WORD_OPTIONAL_COLUMNS = ["pronunciation", "example", "example_translation"]

FALLBACK_DIALECTS = [
    {"id": "cebuano", "name": "Cebuano", "region": "Central Visayas", "color": "#E4572E"},
]
FALLBACK_WORDS = [
    {"id": "ceb-001", "dialect_id": "cebuano", "word": "Salamat", "translation": "Thank you"},
    {"id": "ceb-002", "dialect_id": "cebuano", "word": "Balay", "translation": "House"},
    {"id": "ceb-003", "dialect_id": "cebuano", "word": "Tubig", "translation": "Water"},
    {"id": "ceb-004", "dialect_id": "cebuano", "word": "Kaon", "translation": "Eat"},
    {"id": "ceb-005", "dialect_id": "cebuano", "word": "Gugma", "translation": "Love"},
]


class WordCatalog:
    """Static dialect and word reference data, loaded once from CSV files."""

    def __init__(self, directory: str):
        self.directory = directory
        self.dialects: Dict[str, Dialect] = {}
        self.words: Dict[str, Word] = {}
        self.load_all()

    @classmethod
    def from_records(
        cls, dialects: List[Dict[str, str]], words: List[Dict[str, str]]
    ) -> "WordCatalog":
        catalog = cls.__new__(cls)
        catalog.directory = ""
        catalog._populate(dialects, words)
        return catalog

    def load_all(self):
        dialect_rows = self._read_csv("dialects.csv", DIALECT_COLUMNS)
        word_rows = self._read_csv("words.csv", WORD_COLUMNS)

        if not dialect_rows or not word_rows:
            logger.warning(
                f"No catalog found in {self.directory}. Loading fallback data."
            )
            dialect_rows, word_rows = FALLBACK_DIALECTS, FALLBACK_WORDS

        self._populate(dialect_rows, word_rows)
        logger.info(
            f"Loaded {len(self.words)} words across {len(self.dialects)} dialects"
        )

    def _read_csv(self, file_name: str, required: List[str]) -> List[Dict[str, str]]:
        file_path = os.path.join(self.directory, file_name)
        if not os.path.exists(file_path):
            return []
        try:
            df = pd.read_csv(file_path, encoding="utf-8", dtype=str).fillna("")
        except Exception as e:
            logger.error(f"Failed to load {file_path}: {e}")
            return []

        missing = [c for c in required if c not in df.columns]
        if missing:
            logger.error(f"Skipping {file_name}: Missing columns {missing}.")
            return []

        df = df.apply(lambda col: col.str.strip())
        blank = (df[required] == "").any(axis=1)
        if blank.any():
            logger.warning(f"Dropping {int(blank.sum())} incomplete rows from {file_name}")
            df = df[~blank]
        return df.to_dict("records")

    def _populate(self, dialect_rows, word_rows):
        self.dialects = {}
        self.words = {}
        for row in dialect_rows:
            dialect = Dialect(**{k: row[k] for k in DIALECT_COLUMNS})
            self.dialects[dialect.id] = dialect

        for row in word_rows:
            fields = {k: row[k] for k in WORD_COLUMNS}
            fields.update({k: row.get(k, "") for k in WORD_OPTIONAL_COLUMNS})
            word = Word(**fields)
            if word.id in self.words:
                logger.warning(f"Duplicate word id {word.id}, keeping the first entry")
                continue
            if word.dialect_id not in self.dialects:
                logger.warning(f"Word {word.id} references unknown dialect {word.dialect_id}")
            self.words[word.id] = word

    # --- Lookups ---
    def get_dialects(self) -> List[Dialect]:
        return list(self.dialects.values())

    def get_dialect(self, dialect_id: str) -> Optional[Dialect]:
        return self.dialects.get(dialect_id)

    def get_words(self, dialect_id: Optional[str] = None) -> List[Word]:
        if dialect_id is None:
            return list(self.words.values())
        return [w for w in self.words.values() if w.dialect_id == dialect_id]

    def get_word(self, word_id: str) -> Optional[Word]:
        return self.words.get(word_id)

    def word_of_the_day(self, dialect_id: str, day: Optional[date] = None) -> Optional[Word]:
        """Returns the same word for a given dialect all day, cycling through its words."""
        words = self.get_words(dialect_id)
        if not words:
            return None
        day = day or date.today()
        return words[day.toordinal() % len(words)]

    def __len__(self) -> int:
        return len(self.words)

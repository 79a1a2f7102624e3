import glob
import logging
import os
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .models import WordPair

logger = logging.getLogger(__name__)

DUMMY_WORDS = [
    {"original": "Hund", "translation": "dog"},
    {"original": "Katze", "translation": "cat"},
    {"original": "Baum", "translation": "tree"},
    {"original": "Haus", "translation": "house"},
    {"original": "Wasser", "translation": "water"},
]


class Vocabulary:
    def __init__(self, vocabulary_id: int, key: str, words: List[WordPair]):
        self.id = vocabulary_id
        self.key = key
        self.words = words

    @property
    def name(self) -> str:
        return self.key.replace("_", " ").title()


def read_words(file_path: str) -> List[WordPair]:
    """Reads word pairs from a CSV file with original/translation columns."""
    df = pd.read_csv(file_path, encoding="utf-8")
    if "original" not in df.columns and "word" in df.columns:
        df = df.rename(columns={"word": "original"})
    if "original" not in df.columns or "translation" not in df.columns:
        raise ValueError("Missing columns.")

    df = df.dropna(subset=["original", "translation"])
    if "id" not in df.columns:
        df["id"] = range(1, len(df) + 1)
    return [
        WordPair(
            id=int(row.id),
            original=str(row.original).strip(),
            translation=str(row.translation).strip(),
        )
        for row in df.itertuples(index=False)
    ]


class VocabularyManager:
    """Manages loading and accessing vocabulary lists."""

    def __init__(self, directory: str):
        self.directory = directory
        self.vocabularies: Dict[int, Vocabulary] = {}

    def load_all(self):
        self.vocabularies = {}
        if not os.path.exists(self.directory):
            os.makedirs(self.directory)
            logger.warning(f"Created directory {self.directory}. Please add CSV files.")

        csv_files = sorted(glob.glob(os.path.join(self.directory, "*.csv")))
        for file_path in csv_files:
            key = os.path.splitext(os.path.basename(file_path))[0]
            try:
                words = read_words(file_path)
            except Exception as e:
                logger.error(f"Skipping {key}: {e}")
                continue
            vocabulary_id = len(self.vocabularies) + 1
            self.vocabularies[vocabulary_id] = Vocabulary(vocabulary_id, key, words)
            logger.info(f"Loaded {len(words)} words from {key}")

        if not self.vocabularies:
            logger.warning("No CSV files found. Loading dummy data.")
            words = [WordPair(id=i, **w) for i, w in enumerate(DUMMY_WORDS, start=1)]
            self.vocabularies[1] = Vocabulary(1, "default_dummy", words)

    def get_vocabulary(self, vocabulary_id: int) -> Optional[Vocabulary]:
        return self.vocabularies.get(vocabulary_id)

    def get_vocabularies(self) -> List[Dict[str, Any]]:
        vocabularies = [
            {"id": v.id, "name": v.name, "count": len(v.words)}
            for v in self.vocabularies.values()
        ]
        vocabularies.sort(key=lambda x: x["name"])
        return vocabularies

    def get_words(
        self, vocabulary_id: int, word_ids: Optional[Iterable[int]] = None
    ) -> List[WordPair]:
        vocabulary = self.vocabularies.get(vocabulary_id)
        if vocabulary is None:
            return []
        if word_ids is None:
            return list(vocabulary.words)
        wanted = set(word_ids)
        return [w for w in vocabulary.words if w.id in wanted]

    def remove_word(self, vocabulary_id: int, word_id: int) -> bool:
        vocabulary = self.vocabularies.get(vocabulary_id)
        if vocabulary is None:
            return False
        kept = [w for w in vocabulary.words if w.id != word_id]
        removed = len(kept) != len(vocabulary.words)
        vocabulary.words = kept
        return removed

    def update_word(self, vocabulary_id: int, word: WordPair) -> bool:
        vocabulary = self.vocabularies.get(vocabulary_id)
        if vocabulary is None or all(w.id != word.id for w in vocabulary.words):
            return False
        vocabulary.words = [word if w.id == word.id else w for w in vocabulary.words]
        return True

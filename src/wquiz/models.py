from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for models persisted or served with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TestMode(str, Enum):
    __test__ = False

    WRITE = "write"
    PEEK = "peek"


class WordResult(IntEnum):
    """Outcome of one attempt, ordered best to worst."""

    CORRECT = 1
    OK = 2
    MEDIOCRE = 3
    WRONG = 4


class WordStatus(IntEnum):
    NOT_DONE = 0
    SKIPPED = 1
    DONE = 2


class WordPair(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: int
    original: str
    translation: str

    def reversed(self) -> "WordPair":
        return WordPair(id=self.id, original=self.translation, translation=self.original)


class TestSettings(CamelModel):
    __test__ = False

    mode: TestMode = TestMode.WRITE
    reverse_translations: bool = False
    repeat_invalid: bool = False
    strict_match: bool = False


class WordSessionState(CamelModel):
    word_id: int
    attempts: List[WordResult] = Field(default_factory=list)
    status: WordStatus = WordStatus.NOT_DONE
    final_result: Optional[WordResult] = None


class SessionState(CamelModel):
    vocabulary_id: int
    remaining_pool: List[WordPair] = Field(default_factory=list)
    retry_queue: List[WordPair] = Field(default_factory=list)
    per_word_state: Dict[int, WordSessionState] = Field(default_factory=dict)
    current_word: Optional[WordPair] = None
    presented: Optional[WordPair] = None  # current_word as shown to the user
    removed_word_ids: List[int] = Field(default_factory=list)
    done: bool = False


class ProgressSnapshot(CamelModel):
    vocabulary_id: int
    done: bool = False
    words: List[WordSessionState]


class TestResult(CamelModel):
    __test__ = False

    vocabulary_id: int
    updated_at: datetime
    done: bool = True
    words: List[WordSessionState]


class ResultSummary(BaseModel):
    total: int
    done: int
    skipped: int
    correct: int
    grades: Dict[str, int]
    score_percentage: int
    invalid_word_ids: List[int]
    skipped_word_ids: List[int]

"""Conversions from session state to the persisted snapshot and result shapes."""

from datetime import datetime
from typing import List, Optional, Sequence

from .models import (
    ProgressSnapshot,
    ResultSummary,
    SessionState,
    TestResult,
    WordResult,
    WordSessionState,
    WordStatus,
)


def _copy_words(state: SessionState) -> List[WordSessionState]:
    return [w.model_copy(deep=True) for w in state.per_word_state.values()]


def to_progress_snapshot(state: SessionState) -> ProgressSnapshot:
    return ProgressSnapshot(
        vocabulary_id=state.vocabulary_id, done=False, words=_copy_words(state)
    )


def to_result(
    state: SessionState,
    forced_done: bool = False,
    updated_at: Optional[datetime] = None,
) -> TestResult:
    """
    Builds the historical record of a session. When the session is finalized
    early (forced_done), words that were never finished are recorded as
    skipped.
    """
    words = _copy_words(state)
    if forced_done:
        for word in words:
            if word.status == WordStatus.NOT_DONE:
                word.status = WordStatus.SKIPPED
    return TestResult(
        vocabulary_id=state.vocabulary_id,
        updated_at=updated_at or datetime.now(),
        done=True,
        words=words,
    )


def snapshot_to_result(
    snapshot: ProgressSnapshot, updated_at: Optional[datetime] = None
) -> TestResult:
    """Finalizes a stored in-progress snapshot as a done result."""
    state = SessionState(
        vocabulary_id=snapshot.vocabulary_id,
        per_word_state={w.word_id: w for w in snapshot.words},
    )
    return to_result(state, forced_done=True, updated_at=updated_at)


def grade_attempts(attempts: Sequence[WordResult]) -> Optional[WordResult]:
    """Display grade: the more attempts a correct answer took, the worse."""
    if not attempts:
        return None
    if attempts[-1] != WordResult.CORRECT:
        return WordResult.WRONG
    return {1: WordResult.CORRECT, 2: WordResult.OK, 3: WordResult.MEDIOCRE}.get(
        len(attempts), WordResult.WRONG
    )


def summarize(result: TestResult) -> ResultSummary:
    grades = {grade.name.lower(): 0 for grade in WordResult}
    invalid_word_ids = []
    skipped_word_ids = []
    done_count = 0

    for word in result.words:
        if word.status == WordStatus.SKIPPED:
            skipped_word_ids.append(word.word_id)
            continue
        if word.status != WordStatus.DONE:
            continue
        done_count += 1
        grade = grade_attempts(word.attempts) or WordResult.WRONG
        if word.final_result == WordResult.WRONG:
            grade = WordResult.WRONG
        grades[grade.name.lower()] += 1
        if grade != WordResult.CORRECT:
            invalid_word_ids.append(word.word_id)

    total = len(result.words)
    correct = grades[WordResult.CORRECT.name.lower()]
    return ResultSummary(
        total=total,
        done=done_count,
        skipped=len(skipped_word_ids),
        correct=correct,
        grades=grades,
        score_percentage=round((correct / total) * 100) if total > 0 else 0,
        invalid_word_ids=invalid_word_ids,
        skipped_word_ids=skipped_word_ids,
    )

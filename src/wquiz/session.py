import logging
import random
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Union

from . import matcher
from .models import (
    ProgressSnapshot,
    SessionState,
    TestMode,
    TestResult,
    TestSettings,
    WordPair,
    WordResult,
    WordSessionState,
    WordStatus,
)
from .projection import to_progress_snapshot, to_result
from .selector import WordSelector

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressSnapshot], None]
ResultListener = Callable[[TestResult], None]


class TestSession:
    """
    Drives one test run over a finite set of word pairs.

    Every transition mutates the session state, ends with an explicit
    ``notify()`` and returns the state. Calls that make no sense in the
    current state (nothing presented, session completed) are no-ops.
    """

    __test__ = False

    def __init__(
        self,
        vocabulary_id: int,
        settings: Optional[TestSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or TestSettings()
        self.selector = WordSelector(self.settings.reverse_translations, rng)
        self.state = SessionState(vocabulary_id=vocabulary_id, done=True)
        self.created_at = datetime.now()
        self._progress_listeners: List[ProgressListener] = []
        self._result_listeners: List[ResultListener] = []
        self.result: Optional[TestResult] = None
        self._result_delivered = False
        self._forced_done = False

    # --- Observers ---

    def subscribe_progress(self, listener: ProgressListener):
        self._progress_listeners.append(listener)

    def subscribe_result(self, listener: ResultListener):
        self._result_listeners.append(listener)

    def notify(self) -> SessionState:
        """
        Hands the current projection to observers: a progress snapshot while
        active, the final result once (and only once) after completion.
        Listener errors propagate; the state is kept as is.
        """
        if not self.state.done:
            snapshot = to_progress_snapshot(self.state)
            for listener in self._progress_listeners:
                listener(snapshot)
        elif self.result_pending:
            if self.result is None:
                self.result = to_result(self.state, forced_done=self._forced_done)
            result = self.result
            for listener in self._result_listeners:
                listener(result)
            self._result_delivered = True
        return self.state

    # --- Properties ---

    @property
    def vocabulary_id(self) -> int:
        return self.state.vocabulary_id

    @property
    def done(self) -> bool:
        return self.state.done

    @property
    def presented(self) -> Optional[WordPair]:
        return self.state.presented

    def word_state(self, word_id: int) -> Optional[WordSessionState]:
        return self.state.per_word_state.get(word_id)

    @property
    def is_peek_mode(self) -> bool:
        return self.settings.mode == TestMode.PEEK

    @property
    def result_pending(self) -> bool:
        return (
            self.state.done
            and not self._result_delivered
            and bool(self.state.per_word_state)
        )

    @property
    def remaining_count(self) -> int:
        return len(self.state.remaining_pool) + len(self.state.retry_queue)

    # --- Transitions ---

    def start(
        self,
        words: Iterable[WordPair],
        resume_from: Optional[ProgressSnapshot] = None,
    ) -> SessionState:
        words = list(words)
        per_word_state = {}
        if resume_from is not None:
            saved = {w.word_id: w for w in resume_from.words}
            for word in words:
                if word.id in saved:
                    per_word_state[word.id] = saved[word.id].model_copy(deep=True)

        for word in words:
            per_word_state.setdefault(word.id, WordSessionState(word_id=word.id))

        pool = [
            word
            for word in words
            if per_word_state[word.id].status == WordStatus.NOT_DONE
        ]
        self.state = SessionState(
            vocabulary_id=self.state.vocabulary_id,
            remaining_pool=pool,
            per_word_state=per_word_state,
        )
        self.result = None
        self._result_delivered = False
        self._forced_done = False

        if resume_from is not None:
            logger.info(
                f"Resumed test for vocabulary {self.vocabulary_id}: "
                f"{len(pool)} of {len(words)} words left"
            )
        else:
            logger.info(
                f"Started test for vocabulary {self.vocabulary_id} with {len(words)} words"
            )
        self._present_next()
        if self.state.done:
            return self.notify()
        return self.state

    def submit_attempt(self, result: Union[WordResult, bool]) -> SessionState:
        word = self.state.current_word
        if self.state.done or word is None:
            logger.debug("Ignoring attempt: no word is being presented")
            return self.state

        if isinstance(result, bool):
            result = WordResult.CORRECT if result else WordResult.WRONG
        result = WordResult(result)

        word_state = self.state.per_word_state[word.id]
        word_state.attempts.append(result)
        self._take_current()

        if result == WordResult.CORRECT:
            word_state.status = WordStatus.DONE
            word_state.final_result = result
        elif self.settings.repeat_invalid:
            self.state.retry_queue.append(word)
        else:
            word_state.status = WordStatus.DONE
            word_state.final_result = WordResult.WRONG

        return self.advance()

    def answer(self, text: str) -> bool:
        """Validates a written answer against the presented word and submits it."""
        presented = self.state.presented
        if self.state.done or presented is None:
            logger.debug("Ignoring answer: no word is being presented")
            return False

        valid = matcher.validate(text, presented.translation, self.settings.strict_match)
        self.submit_attempt(WordResult.CORRECT if valid else WordResult.WRONG)
        return valid

    def skip(self) -> SessionState:
        word = self.state.current_word
        if self.state.done or word is None:
            logger.debug("Ignoring skip: no word is being presented")
            return self.state

        self._take_current()
        self.state.per_word_state[word.id].status = WordStatus.SKIPPED
        return self.advance()

    def advance(self) -> SessionState:
        if self.state.done:
            return self.state
        self._present_next()
        return self.notify()

    def remove_word(self, word_id: int) -> SessionState:
        if self.state.done or word_id not in self.state.per_word_state:
            return self.state

        state = self.state
        state.remaining_pool = [w for w in state.remaining_pool if w.id != word_id]
        state.retry_queue = [w for w in state.retry_queue if w.id != word_id]
        del state.per_word_state[word_id]
        state.removed_word_ids.append(word_id)
        logger.info(f"Removed word {word_id} from test of vocabulary {self.vocabulary_id}")

        if state.current_word is not None and state.current_word.id == word_id:
            state.current_word = None
            state.presented = None
            return self.advance()
        if not self.remaining_count:
            return self.advance()
        return self.notify()

    def replace_word(self, word: WordPair) -> SessionState:
        """Swaps in an edited version of a word still waiting to be tested."""
        state = self.state
        if state.done or word.id not in state.per_word_state:
            return state

        state.remaining_pool = [word if w.id == word.id else w for w in state.remaining_pool]
        state.retry_queue = [word if w.id == word.id else w for w in state.retry_queue]
        if state.current_word is not None and state.current_word.id == word.id:
            state.current_word = word
            state.presented = self.selector.present(word)
        return state

    def change_settings(self, settings: TestSettings) -> SessionState:
        self.settings = settings
        self.selector.reverse = settings.reverse_translations
        if self.state.current_word is not None:
            self.state.presented = self.selector.present(self.state.current_word)
        return self.state

    def finish(self) -> SessionState:
        """
        Ends the test early; words not yet done are recorded as skipped. On a
        completed session whose result was not delivered, delivery is retried.
        """
        if self.state.done:
            if self.result_pending:
                return self.notify()
            return self.state

        state = self.state
        for word_state in state.per_word_state.values():
            if word_state.status == WordStatus.NOT_DONE:
                word_state.status = WordStatus.SKIPPED
        state.remaining_pool = []
        state.retry_queue = []
        self._forced_done = True
        logger.info(f"Test for vocabulary {self.vocabulary_id} finished early")
        return self.advance()

    # --- Internals ---

    def _take_current(self):
        """Removes the current word from whichever source it was picked from."""
        state = self.state
        word_id = state.current_word.id
        state.remaining_pool = [w for w in state.remaining_pool if w.id != word_id]
        state.retry_queue = [w for w in state.retry_queue if w.id != word_id]
        state.current_word = None
        state.presented = None

    def _present_next(self) -> SessionState:
        state = self.state
        selection = self.selector.select(state.remaining_pool, state.retry_queue)
        if selection is None:
            state.current_word = None
            state.presented = None
            state.done = True
            logger.info(f"Test for vocabulary {self.vocabulary_id} completed")
        else:
            state.current_word = selection.word
            state.presented = selection.presented
        return state

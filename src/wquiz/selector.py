import random
from collections import namedtuple
from typing import List, Optional, Sequence, Tuple

from .models import WordPair

Selection = namedtuple("Selection", ["word", "presented", "from_retry"])


class WordSelector:
    """Picks the next word to present, optionally reversing its direction."""

    def __init__(self, reverse: bool = False, rng: Optional[random.Random] = None):
        self.reverse = reverse
        self.rng = rng or random.Random()

    def present(self, word: WordPair) -> WordPair:
        return word.reversed() if self.reverse else word

    def next(self, pool: Sequence[WordPair]) -> Optional[Tuple[WordPair, int]]:
        if not pool:
            return None
        index = self.rng.randrange(len(pool))
        return self.present(pool[index]), index

    def select(
        self, pool: Sequence[WordPair], retry_queue: List[WordPair]
    ) -> Optional[Selection]:
        """
        Random pick from the pool; once it is exhausted the retry queue is
        served first-in first-out. Returns None when both are empty.
        """
        if pool:
            presented, index = self.next(pool)
            return Selection(pool[index], presented, False)
        if retry_queue:
            word = retry_queue[0]
            return Selection(word, self.present(word), True)
        return None

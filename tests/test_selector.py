"""Tests for next word selection."""

import random

from wquiz.models import WordPair
from wquiz.selector import WordSelector

CASA = WordPair(id=1, original="casa", translation="house")
GATO = WordPair(id=2, original="gato", translation="cat")


def test_next_returns_presented_word_and_index(first_pick):
    presented, index = WordSelector(rng=first_pick).next([CASA, GATO])
    assert presented == CASA
    assert index == 0


def test_reverse_swaps_prompt_and_answer(first_pick):
    presented, _ = WordSelector(reverse=True, rng=first_pick).next([CASA])
    assert presented.original == "house"
    assert presented.translation == "casa"
    assert presented.id == CASA.id


def test_random_pick_covers_the_pool():
    selector = WordSelector(rng=random.Random(7))
    picked = {selector.next([CASA, GATO])[0].id for _ in range(50)}
    assert picked == {1, 2}


def test_retry_queue_is_served_in_order_once_pool_is_empty():
    selector = WordSelector(rng=random.Random(7))
    selection = selector.select([], [GATO, CASA])
    assert selection.word == GATO
    assert selection.from_retry


def test_pool_is_preferred_over_retry_queue(first_pick):
    selection = WordSelector(rng=first_pick).select([CASA], [GATO])
    assert selection.word == CASA
    assert not selection.from_retry


def test_nothing_left_signals_completion():
    assert WordSelector().select([], []) is None


def test_next_on_empty_pool_signals_completion():
    assert WordSelector().next([]) is None

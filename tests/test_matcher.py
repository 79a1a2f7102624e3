"""Tests for free-text answer validation."""

from wquiz.matcher import deaccent, tokenize, validate


def test_lenient_match_ignores_diacritics():
    assert validate("café", "cafe", strict=False)
    assert validate("cafe", "café", strict=False)


def test_strict_match_requires_exact_tokens():
    assert not validate("café", "cafe", strict=True)
    assert validate("café", "café", strict=True)


def test_empty_submission_is_invalid():
    assert not validate("", "anything", strict=False)
    assert not validate("   ", "anything", strict=False)
    assert not validate(" , / ", "anything", strict=True)


def test_one_synonym_of_many_is_enough():
    assert validate("cão", "dog, cão", strict=False)
    assert validate("cao", "dog, cão", strict=False)


def test_extra_unmatched_token_fails():
    assert not validate("dog, cão", "cão", strict=False)
    assert not validate("big dog", "dog", strict=False)


def test_multiple_tokens_in_any_order():
    assert validate("home house", "house/home", strict=False)
    assert validate("home,house", "house home", strict=True)


def test_case_is_significant():
    assert not validate("Dog", "dog", strict=False)


def test_tokenize_splits_on_whitespace_commas_and_slashes():
    assert tokenize("a, b/c  d") == ["a", "b", "c", "d"]
    assert tokenize("") == []


def test_deaccent():
    assert deaccent("ção") == "cao"
    assert deaccent("Žluťoučký") == "Zlutoucky"


def test_validate_is_deterministic():
    results = {validate("não", "nao", strict=False) for _ in range(10)}
    assert results == {True}

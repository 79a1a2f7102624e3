"""Free-text answer validation."""

import re
import unicodedata
from typing import List

TOKEN_SEPARATORS = re.compile(r"[\s,/]+")


def tokenize(text: str) -> List[str]:
    """Splits on whitespace, commas and slashes, dropping empty tokens."""
    return [token for token in TOKEN_SEPARATORS.split(text) if token]


def deaccent(word: str) -> str:
    decomposed = unicodedata.normalize("NFD", word)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def validate(submitted_text: str, accepted_translation: str, strict: bool = False) -> bool:
    """
    Every token of the submission must match some token of the accepted
    translation. Lenient matching ignores diacritics; strict matching compares
    tokens exactly.
    """
    submitted = tokenize(submitted_text or "")
    if not submitted:
        return False

    accepted = tokenize(accepted_translation or "")
    if not strict:
        submitted = [deaccent(token) for token in submitted]
        accepted = [deaccent(token) for token in accepted]

    accepted_tokens = set(accepted)
    return all(token in accepted_tokens for token in submitted)

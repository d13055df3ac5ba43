"""Lossy lexical signatures used for approximate matching."""

import re

MIN_TOKEN_LENGTH = 4

_NON_ALPHANUMERIC = re.compile(r"[^\w\s]|_")


def signature(prompt: str) -> list[str]:
    """Build the sorted, de-duplicated token signature of a prompt.

    Lowercases, replaces non-alphanumeric characters with spaces, splits on
    whitespace and keeps tokens longer than three characters.

    Example:
        >>> signature("Explain the QuickSort algorithm!")
        ['algorithm', 'explain', 'quicksort']
    """
    normalized = _NON_ALPHANUMERIC.sub(" ", prompt.lower())
    return sorted({token for token in normalized.split() if len(token) >= MIN_TOKEN_LENGTH})

"""
Result types shared by the searchers.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Match:
    """A vocabulary word ranked against a query."""

    word: str
    """The matching vocabulary entry"""

    distance: float
    """Cosine similarity between the query and this word (-1 to 1)"""

    index: int = -1
    """Position of the word in the vocabulary"""

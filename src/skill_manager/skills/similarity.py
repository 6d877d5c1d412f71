"""Name similarity between skills.

Names are hyphen-tokenized (``rust-test-mock`` -> ``rust``, ``test``,
``mock``). Two scores are combined:

- Jaccard: shared tokens over all tokens, order ignored.
- Prefix count: leading tokens that match position by position.

``find_similar_wide`` casts a wide net and is meant for flagging possible
duplicates to a reviewer before a skill is created. ``find_similar_strict``
requires both scores and is what unattended consolidation uses.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

DELIMITER = "-"

WIDE_JACCARD = 0.40
STRICT_JACCARD = 0.30
STRICT_PREFIX = 3


@dataclass(frozen=True)
class SimilarityMatch:
    """A candidate skill name and its scores against the query name."""

    name: str
    jaccard: float
    prefix: int


def tokenize(name: str) -> list[str]:
    return name.split(DELIMITER)


def jaccard_similarity(name_a: str, name_b: str) -> float:
    """Jaccard index of the two names' token sets (0.0 to 1.0)."""
    tokens_a = set(tokenize(name_a))
    tokens_b = set(tokenize(name_b))
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def prefix_token_count(name_a: str, name_b: str) -> int:
    """Count leading tokens that match, stopping at the first mismatch."""
    shared = 0
    for a, b in zip(tokenize(name_a), tokenize(name_b)):
        if a != b:
            break
        shared += 1
    return shared


def _score_all(name: str, candidates: Iterable[str]) -> list[SimilarityMatch]:
    return [
        SimilarityMatch(
            name=candidate,
            jaccard=jaccard_similarity(name, candidate),
            prefix=prefix_token_count(name, candidate),
        )
        for candidate in candidates
    ]


def _is_strict(match: SimilarityMatch) -> bool:
    return match.jaccard >= STRICT_JACCARD and match.prefix >= STRICT_PREFIX


def find_similar_wide(name: str, candidates: Iterable[str]) -> list[SimilarityMatch]:
    """Matches with Jaccard >= 0.40, or Jaccard >= 0.30 and prefix >= 3.

    Sorted by Jaccard, highest first.
    """
    matches = [m for m in _score_all(name, candidates) if m.jaccard >= WIDE_JACCARD or _is_strict(m)]
    return sorted(matches, key=lambda m: m.jaccard, reverse=True)


def find_similar_strict(name: str, candidates: Iterable[str]) -> list[SimilarityMatch]:
    """Matches with both Jaccard >= 0.30 and prefix >= 3.

    Sorted by Jaccard, highest first.
    """
    matches = [m for m in _score_all(name, candidates) if _is_strict(m)]
    return sorted(matches, key=lambda m: m.jaccard, reverse=True)

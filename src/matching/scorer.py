# src/matching/scorer.py

"""Dice-coefficient similarity over character bigrams."""

from collections import Counter
from typing import NamedTuple


class BigramProfile(NamedTuple):
    """Whitespace-free text plus the multiset of its bigrams."""

    compact: str
    bigrams: Counter[str]


def bigram_profile(text: str) -> BigramProfile:
    """Build the bigram profile of a name.

    Whitespace is dropped first so word boundaries don't produce bigrams.
    """
    compact = "".join(text.split())
    return BigramProfile(
        compact,
        Counter(compact[i:i + 2] for i in range(len(compact) - 1)),
    )


def score_profiles(a: BigramProfile, b: BigramProfile) -> float:
    """Dice coefficient between two precomputed profiles."""
    if a.compact == b.compact:
        return 1.0
    if len(a.compact) < 2 or len(b.compact) < 2:
        return 0.0
    overlap = sum((a.bigrams & b.bigrams).values())
    total = sum(a.bigrams.values()) + sum(b.bigrams.values())
    return 2.0 * overlap / total


def score(a: str, b: str) -> float:
    """Similarity of two names in ``[0, 1]``.

    Identical strings (ignoring whitespace) score ``1.0``; a string of
    fewer than two characters that differs from the other scores ``0.0``.
    Otherwise ``2 * |shared bigrams| / (|bigrams(a)| + |bigrams(b)|)``.
    """
    return score_profiles(bigram_profile(a), bigram_profile(b))

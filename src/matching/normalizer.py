# src/matching/normalizer.py

"""Product name normalisation applied before any comparison or storage."""

import re

from src.config.settings import Settings
from src.models.price_outcome import GroupKey

_WHITESPACE_RE = re.compile(r"\s+")

_NOISE_RE = re.compile(
    "|".join(f"(?:{p})" for p in Settings.NOISE_PATTERNS),
    re.IGNORECASE,
)


def normalize(raw_name: str) -> str:
    """Lowercase, strip marketing qualifiers, collapse whitespace and trim.

    Qualifier removal repeats until the text stops changing, so stripping
    one phrase can never leave a fresh qualifier behind
    (``"prepre-workoutworkout"`` normalises to ``""``). This keeps the
    function idempotent.
    """
    text = raw_name.lower()
    while True:
        collapsed = _WHITESPACE_RE.sub(" ", text)
        stripped = _NOISE_RE.sub("", collapsed)
        if stripped == text:
            break
        text = stripped
    return text.strip()


def group_key(listed_name: str, vendor_id: int) -> GroupKey:
    """Build the price aggregation key for a listing."""
    return GroupKey(normalize(listed_name), vendor_id)

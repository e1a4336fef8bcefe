"""Confidence labels for extracted text, chunks, and retrieval results.

Confidence flows through the system in one direction:

1. **Document** -- set from the extraction method (PDF text layer is
   ``medium``; OCR and speech-to-text are ``low``) and upgraded to
   ``medium`` only when AI cleanup succeeds.
2. **Chunk** -- inherits its parent document's label at query time.
3. **Retrieval result** -- an aggregate label derived from the mean
   similarity score of the returned chunks (:func:`aggregate_confidence`).

:class:`ConfidenceLevel` is ordered so upgrades and downgrades are explicit
comparisons rather than string juggling.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

# Mean-similarity thresholds for the aggregate label.  Both are exclusive:
# a mean of exactly 0.5 is "low", exactly 0.8 is "medium".
_HIGH_THRESHOLD = 0.8
_MEDIUM_THRESHOLD = 0.5


class ConfidenceLevel(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Three-level reliability label, ordered ``LOW < MEDIUM < HIGH``."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.rank >= other.rank

    def upgrade_to(self, target: ConfidenceLevel) -> ConfidenceLevel:
        """Return the higher of ``self`` and *target* (never lowers)."""
        return target if target > self else self

    def downgrade_to(self, target: ConfidenceLevel) -> ConfidenceLevel:
        """Return the lower of ``self`` and *target* (never raises)."""
        return target if target < self else self


_RANKS = {
    ConfidenceLevel.LOW: 0,
    ConfidenceLevel.MEDIUM: 1,
    ConfidenceLevel.HIGH: 2,
}


def score_to_level(score: float) -> ConfidenceLevel:
    """Map a mean similarity score to a confidence label.

    ``> 0.8`` is HIGH, ``> 0.5`` is MEDIUM, anything else is LOW.
    """
    if score > _HIGH_THRESHOLD:
        return ConfidenceLevel.HIGH
    if score > _MEDIUM_THRESHOLD:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def aggregate_confidence(scores: Sequence[float]) -> ConfidenceLevel:
    """Return the aggregate label for a set of retrieval scores.

    The label is derived from the arithmetic mean; an empty result set is
    always LOW.
    """
    if not scores:
        return ConfidenceLevel.LOW
    return score_to_level(sum(scores) / len(scores))

"""Score a typed answer against the reference phrase, word by word."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import Levenshtein

from ..settings import DEFAULT_CLOSE_CREDIT, DEFAULT_TYPO_DISTANCE, PracticeSettings

PUNCTUATION = ".,!?;:'\"()"
_PUNCTUATION_RE = re.compile("[" + re.escape(PUNCTUATION) + "]")
_WHITESPACE_RE = re.compile(r"\s+")


class DiffKind(str, Enum):
    MATCH = "match"
    CLOSE = "close"
    WRONG = "wrong"
    EXTRA = "extra"
    MISSING = "missing"


@dataclass(slots=True, frozen=True)
class DiffToken:
    kind: DiffKind
    user_word: str
    reference_word: str


@dataclass(slots=True, frozen=True)
class ScoreResult:
    score: int
    is_exact_match: bool
    diff: List[DiffToken] = field(default_factory=list)


def normalize_text(text: str) -> str:
    lowered = (text or "").lower()
    stripped = _PUNCTUATION_RE.sub("", lowered)
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def edit_distance(first: str, second: str) -> int:
    """Character-level Levenshtein distance with unit costs."""
    return Levenshtein.distance(first, second)


class TextScorer:
    """Positional word alignment with typo tolerance.

    Position ``i`` of the answer is compared with position ``i`` of the
    reference. Reference phrases are single sentences and learners mostly
    mistype words rather than drop them, so no sequence alignment is done.
    """

    def __init__(
        self,
        *,
        close_credit: float = DEFAULT_CLOSE_CREDIT,
        max_typo_distance: int = DEFAULT_TYPO_DISTANCE,
    ) -> None:
        self.close_credit = max(0.0, min(float(close_credit), 1.0))
        self.max_typo_distance = max(0, int(max_typo_distance))

    @classmethod
    def from_settings(cls, settings: PracticeSettings) -> "TextScorer":
        return cls(
            close_credit=settings.close_credit,
            max_typo_distance=settings.max_typo_distance,
        )

    def score(self, answer: str, reference: str) -> ScoreResult:
        user_norm = normalize_text(answer)
        reference_norm = normalize_text(reference)
        if user_norm == reference_norm:
            return ScoreResult(score=100, is_exact_match=True, diff=[])

        user_words = user_norm.split()
        reference_words = reference_norm.split()
        diff: list[DiffToken] = []
        credit = 0.0
        for idx in range(max(len(user_words), len(reference_words))):
            user_word = user_words[idx] if idx < len(user_words) else ""
            reference_word = reference_words[idx] if idx < len(reference_words) else ""
            kind = self._classify(user_word, reference_word)
            if kind is DiffKind.MATCH:
                credit += 1.0
            elif kind is DiffKind.CLOSE:
                credit += self.close_credit
            diff.append(DiffToken(kind=kind, user_word=user_word, reference_word=reference_word))

        if not reference_words:
            return ScoreResult(score=0, is_exact_match=False, diff=diff)
        score = round_half_up(100 * credit / len(reference_words))
        return ScoreResult(score=max(0, min(score, 100)), is_exact_match=False, diff=diff)

    def _classify(self, user_word: str, reference_word: str) -> DiffKind:
        if user_word and not reference_word:
            return DiffKind.EXTRA
        if reference_word and not user_word:
            return DiffKind.MISSING
        if user_word == reference_word:
            return DiffKind.MATCH
        if edit_distance(user_word, reference_word) <= self.max_typo_distance:
            return DiffKind.CLOSE
        return DiffKind.WRONG


def score_answer(answer: str, reference: str) -> ScoreResult:
    return TextScorer().score(answer, reference)


__all__ = [
    "DiffKind",
    "DiffToken",
    "PUNCTUATION",
    "ScoreResult",
    "TextScorer",
    "edit_distance",
    "normalize_text",
    "round_half_up",
    "score_answer",
]

"""Candidate scoring for type-name resolution.

Each candidate string gets a base score from where it was found plus a small
bonus for length (longer names tend to be more specific).  The highest score
wins; ties go to the longer string, then to the earliest candidate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from bimbudget.extraction.properties import normalize_text, unwrap

LENGTH_BONUS_STEP = 12
MAX_LENGTH_BONUS = 3
MIN_CANDIDATE_LENGTH = 2


@dataclass(frozen=True)
class Candidate:
    text: str
    score: int


def is_acceptable(text: str) -> bool:
    """Reject empty strings, one-letter strings and raw ``Ifc...`` tags."""
    if len(text) < MIN_CANDIDATE_LENGTH:
        return False
    return not text.lower().startswith("ifc")


def score_candidate(text: str, base: int) -> int:
    """Base score plus one point per 12 characters, capped at +3."""
    return base + min(MAX_LENGTH_BONUS, len(text) // LENGTH_BONUS_STEP)


def rank_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Sort by score, then length, both descending.  The sort is stable."""
    return sorted(candidates, key=lambda c: (-c.score, -len(c.text)))


@dataclass
class CandidatePool:
    """Collects type-name candidates and picks the best one."""

    candidates: list[Candidate] = field(default_factory=list)

    def add(self, raw: Any, base: int) -> None:
        value = unwrap(raw)
        if isinstance(value, Mapping):
            return
        text = normalize_text(value)
        if not is_acceptable(text):
            return
        self.candidates.append(Candidate(text, score_candidate(text, base)))

    def best(self) -> str | None:
        ranked = rank_candidates(self.candidates)
        return ranked[0].text if ranked else None

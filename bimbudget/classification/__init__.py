"""Type names and chapter/subchapter classification."""

from bimbudget.classification.classifier import Classification, classify, type_name
from bimbudget.classification.scoring import Candidate, rank_candidates, score_candidate

__all__ = [
    "Candidate",
    "Classification",
    "classify",
    "rank_candidates",
    "score_candidate",
    "type_name",
]

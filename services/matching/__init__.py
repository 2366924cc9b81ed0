"""
Matching Module

Policy insurer/version -> reference Wording
"""

from .matcher import (
    Ambiguous,
    Matched,
    MatchInputError,
    MatchResult,
    NoMatch,
    WordingCandidate,
    insurers_overlap,
    match_wording,
    versions_agree,
)
from .normalize import leading_token, normalize_insurer, normalize_version
from .service import WordingMatchService, candidate_from_wording

__all__ = [
    # Normalize
    "normalize_insurer",
    "normalize_version",
    "leading_token",
    # Matcher
    "WordingCandidate",
    "Matched",
    "NoMatch",
    "Ambiguous",
    "MatchResult",
    "MatchInputError",
    "insurers_overlap",
    "versions_agree",
    "match_wording",
    # Service
    "WordingMatchService",
    "candidate_from_wording",
]

"""
Insurer/Version Matcher

Resolve a policy's free-text insurer + wording version to a single
Wording record.

Two phases:
1. narrow: candidates whose normalized insurer contains the target's
   leading token ("dual")
2. accept: insurer containment (either direction) AND version agreement

Outcomes are tagged: Matched | NoMatch | Ambiguous.
More than one accepted candidate is never resolved by position.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Union

from .normalize import leading_token, normalize_insurer, normalize_version


class MatchInputError(ValueError):
    """Insurer/version missing - matching refused"""


# =============================================================================
# Candidates
# =============================================================================

@dataclass(frozen=True)
class WordingCandidate:
    """Wording record as seen by the matcher"""
    id: str
    insurer: str
    wording_version: str | None = None
    file_name: str | None = None

    @property
    def normalized_insurer(self) -> str:
        return normalize_insurer(self.insurer)

    @property
    def normalized_version(self) -> str:
        return normalize_version(self.wording_version)

    def to_dict(self) -> dict[str, Any]:
        """Diagnostic form (id, normalized insurer, raw version, file name)"""
        return {
            "id": self.id,
            "insurer": self.normalized_insurer,
            "wording_version": self.wording_version,
            "file_name": self.file_name,
        }


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class Matched:
    """Exactly one wording satisfied the match rules"""
    wording_id: str
    candidate: WordingCandidate | None = None
    already_matched: bool = False
    status: Literal["matched"] = "matched"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "wording_id": self.wording_id,
            "already_matched": self.already_matched,
        }


@dataclass(frozen=True)
class NoMatch:
    """
    No wording satisfied the match rules

    candidates: the narrowed set (shared leading token) that was considered
    available: every wording that was loaded
    """
    search_insurer: str
    search_version: str
    candidates: list[WordingCandidate] = field(default_factory=list)
    available: list[WordingCandidate] = field(default_factory=list)
    status: Literal["no_match"] = "no_match"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "search": {
                "insurer": self.search_insurer,
                "version": self.search_version,
            },
            "candidates": [c.to_dict() for c in self.candidates],
            "available_wordings": [c.to_dict() for c in self.available],
        }


@dataclass(frozen=True)
class Ambiguous:
    """Several wordings satisfied the match rules - operator must pick"""
    search_insurer: str
    search_version: str
    candidates: list[WordingCandidate] = field(default_factory=list)
    status: Literal["ambiguous"] = "ambiguous"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "search": {
                "insurer": self.search_insurer,
                "version": self.search_version,
            },
            "candidates": [c.to_dict() for c in self.candidates],
        }


MatchResult = Union[Matched, NoMatch, Ambiguous]


# =============================================================================
# Rules
# =============================================================================

def insurers_overlap(candidate_insurer: str, target_insurer: str) -> bool:
    """Normalized insurer containment in either direction"""
    if not candidate_insurer or not target_insurer:
        return False
    return candidate_insurer in target_insurer or target_insurer in candidate_insurer


def versions_agree(
    candidate_version: str,
    target_version: str,
    candidate_file_name: str | None = None,
) -> bool:
    """
    Loose version agreement

    - both empty
    - both present and one contains the other
    - file name contains the target version, or the reverse
    """
    if not candidate_version and not target_version:
        return True

    if candidate_version and target_version:
        if candidate_version in target_version or target_version in candidate_version:
            return True

    file_name = (candidate_file_name or "").strip().lower()
    if file_name and target_version:
        if target_version in file_name or file_name in target_version:
            return True

    return False


def match_wording(
    insurer: str | None,
    wording_version: str | None,
    candidates: Iterable[WordingCandidate],
) -> MatchResult:
    """
    Match a policy insurer/version against the wording candidates

    Args:
        insurer: extracted insurer name (required)
        wording_version: extracted wording version (may be empty)
        candidates: full wording candidate set

    Returns:
        Matched | NoMatch | Ambiguous

    Raises:
        MatchInputError: insurer empty after normalization
    """
    target_insurer = normalize_insurer(insurer)
    if not target_insurer:
        raise MatchInputError("Policy insurer is empty")

    target_version = normalize_version(wording_version)
    available = list(candidates)

    token = leading_token(target_insurer)
    narrowed = [c for c in available if token in c.normalized_insurer]

    accepted = [
        c for c in narrowed
        if insurers_overlap(c.normalized_insurer, target_insurer)
        and versions_agree(c.normalized_version, target_version, c.file_name)
    ]

    if len(accepted) == 1:
        return Matched(wording_id=accepted[0].id, candidate=accepted[0])

    if len(accepted) > 1:
        return Ambiguous(
            search_insurer=target_insurer,
            search_version=target_version,
            candidates=accepted,
        )

    return NoMatch(
        search_insurer=target_insurer,
        search_version=target_version,
        candidates=narrowed,
        available=available,
    )

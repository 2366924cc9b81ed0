"""
Wording match service

Loads a policy and the wording candidate set through an injected
repository, runs the matcher, persists a single match.
"""

from __future__ import annotations

import logging

from services.storage.records import (
    PolicyRecord,
    PolicyRepository,
    RecordNotFoundError,
    WordingAlreadyAssignedError,
    WordingRecord,
    advance_status,
)

from .matcher import Matched, MatchInputError, MatchResult, WordingCandidate, match_wording

logger = logging.getLogger(__name__)


def candidate_from_wording(wording: WordingRecord) -> WordingCandidate:
    """WordingRecord -> WordingCandidate"""
    return WordingCandidate(
        id=wording.id,
        insurer=wording.insurer,
        wording_version=wording.wording_version,
        file_name=wording.file_name,
    )


class WordingMatchService:
    """
    Policy -> Wording matching

    - policy already linked to a wording: existing link returned, no re-match
    - insurer / wording_version missing: MatchInputError
    - Matched: wording_id + status "matched" written once
    - NoMatch / Ambiguous: returned as-is for manual resolution
    """

    def __init__(self, repository: PolicyRepository):
        self.repository = repository

    def _load_policy(self, policy_id: str) -> PolicyRecord:
        policy = self.repository.get_policy(policy_id)
        if policy is None:
            raise RecordNotFoundError(f"Policy not found: {policy_id}")
        return policy

    def match_policy(self, policy_id: str) -> tuple[MatchResult, PolicyRecord]:
        """
        Match one policy

        Returns:
            (result, policy) - policy reflects the persisted state

        Raises:
            RecordNotFoundError: unknown policy
            MatchInputError: insurer or wording_version not extracted yet
        """
        policy = self._load_policy(policy_id)

        if policy.wording_id:
            logger.info(f"Policy {policy_id} already matched to {policy.wording_id}")
            # wording picked at upload, fields extracted later
            target = advance_status(policy.status, "matched")
            if policy.has_match_fields and target != policy.status:
                policy = self.repository.update_policy_status(policy_id, target)
            return Matched(wording_id=policy.wording_id, already_matched=True), policy

        if not policy.has_match_fields:
            raise MatchInputError(
                "Policy has no extracted insurer and wording_version - run extraction first"
            )

        candidates = [candidate_from_wording(w) for w in self.repository.list_wordings()]
        result = match_wording(policy.insurer, policy.wording_version, candidates)

        logger.info(
            f"Match policy={policy_id} status={result.status} "
            f"candidates={len(candidates)}"
        )

        if isinstance(result, Matched):
            updated = self.repository.attach_wording(policy_id, result.wording_id)
            if updated is None:
                # matched concurrently by someone else
                current = self._load_policy(policy_id)
                return Matched(wording_id=current.wording_id or result.wording_id,
                               already_matched=True), current
            return result, updated

        return result, policy

    def assign_wording(self, policy_id: str, wording_id: str) -> PolicyRecord:
        """
        Operator resolution of a NoMatch / Ambiguous outcome

        Raises:
            RecordNotFoundError: unknown policy or wording
            MatchInputError: insurer or wording_version not extracted yet
            WordingAlreadyAssignedError: policy already linked
        """
        policy = self._load_policy(policy_id)
        if self.repository.get_wording(wording_id) is None:
            raise RecordNotFoundError(f"Wording not found: {wording_id}")

        if not policy.has_match_fields:
            raise MatchInputError(
                "Policy has no extracted insurer and wording_version - run extraction first"
            )

        if policy.wording_id:
            raise WordingAlreadyAssignedError(
                f"Policy {policy_id} already references wording {policy.wording_id}"
            )

        updated = self.repository.attach_wording(policy_id, wording_id)
        if updated is None:
            raise WordingAlreadyAssignedError(
                f"Policy {policy_id} already references a wording"
            )

        logger.info(f"Manual match policy={policy_id} wording={wording_id}")
        return updated

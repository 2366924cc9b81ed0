"""
Policy chat

1. pick the policy the customer is asking about
   last_policy_id > single policy > LLM selection (or clarification question)
2. retrieve schedule / wording windows for the question
3. answer from those windows only
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from api.config_loader import (
    get_chat_max_policies_listed,
    get_chat_messages,
    get_chat_top_k,
    get_chat_window_chars,
    get_chat_window_overlap,
)
from services.extraction.prompts import (
    CHAT_SYSTEM_PROMPT,
    CHAT_USER_TEMPLATE,
    POLICY_LISTING_TEMPLATE,
    SELECT_POLICY_SYSTEM_PROMPT,
    SELECT_POLICY_USER_TEMPLATE,
)
from services.ingestion.utils import truncate_text
from services.llm.client import LLMClient
from services.storage.records import PolicyRecord, PolicyRepository, RecordNotFoundError

from .context import retrieve_context

logger = logging.getLogger(__name__)

DEFAULT_CLARIFICATION_QUESTION = "Which policy are you asking about?"


@dataclass
class PolicySelection:
    """Selection outcome: a policy, or a question back to the user"""
    policy: PolicyRecord | None
    question: str | None = None

    @property
    def needs_clarification(self) -> bool:
        return self.policy is None


@dataclass
class ChatReply:
    """/chat response body"""
    reply: str | None
    selected_policy_id: str | None
    clarification: bool = False
    question: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _message(key: str, default: str) -> str:
    return get_chat_messages().get(key) or default


def build_policy_listing(policies: list[PolicyRecord]) -> str:
    """Numbered policy listing for the selection prompt"""
    return "\n\n".join(
        POLICY_LISTING_TEMPLATE.format(
            index=i + 1,
            id=p.id,
            file_name=p.file_name or "",
            insurer=p.insurer or "",
            wording_version=p.wording_version or "",
        )
        for i, p in enumerate(policies)
    )


async def select_policy(
    message: str,
    policies: list[PolicyRecord],
    llm: LLMClient,
    last_policy_id: str | None = None,
    clarification: str | None = None,
) -> PolicySelection:
    """
    Choose the policy a message refers to

    A UUID the model returns that is not in the customer's list (or a
    policyId that is not a string) counts as unclear.
    """
    by_id = {p.id: p for p in policies}
    question = _message("clarification_question", DEFAULT_CLARIFICATION_QUESTION)

    if last_policy_id:
        if last_policy_id in by_id:
            return PolicySelection(policy=by_id[last_policy_id])
        logger.warning(f"last_policy_id {last_policy_id} not among customer policies, ignoring")

    if len(policies) == 1:
        logger.info(f"Only one policy, auto-selected: {policies[0].id}")
        return PolicySelection(policy=policies[0])

    if not policies:
        return PolicySelection(policy=None, question=question)

    listed = policies[: get_chat_max_policies_listed()]
    clarification_block = (
        f'The customer clarified: "{clarification}"\n' if clarification else ""
    )
    response = await llm.complete(
        SELECT_POLICY_SYSTEM_PROMPT,
        SELECT_POLICY_USER_TEMPLATE.format(
            message=message,
            clarification_block=clarification_block,
            policy_listing=build_policy_listing(listed),
        ),
        endpoint="select_policy",
        json_mode=True,
    )
    if not response.success or response.data is None:
        logger.warning(f"Policy selection failed ({response.error_code}), asking user")
        return PolicySelection(policy=None, question=question)

    data = response.data
    chosen = data.get("policyId")
    if (
        data.get("needs_clarification")
        or not isinstance(chosen, str)
        or chosen not in by_id
    ):
        return PolicySelection(
            policy=None,
            question=data.get("clarification_question") or question,
        )
    return PolicySelection(policy=by_id[chosen])


async def answer_question(
    repository: PolicyRepository,
    llm: LLMClient,
    policy: PolicyRecord,
    message: str,
) -> str:
    """Answer from retrieved schedule / wording windows"""
    size = get_chat_window_chars()
    overlap = get_chat_window_overlap()
    top_k = get_chat_top_k()

    wording = repository.get_wording(policy.wording_id) if policy.wording_id else None

    schedule_context = retrieve_context(policy.ocr_text, message, top_k, size, overlap)
    wording_context = retrieve_context(
        wording.wording_text if wording else None, message, top_k, size, overlap
    )

    user_prompt = CHAT_USER_TEMPLATE.format(
        file_name=policy.file_name or "policy",
        insurer=policy.insurer or "unknown insurer",
        wording_version=policy.wording_version or "unknown",
        schedule_context="\n...\n".join(schedule_context) or "(no schedule text)",
        wording_context="\n...\n".join(wording_context) or "(no matched wording)",
        message=message,
    )

    response = await llm.complete(
        CHAT_SYSTEM_PROMPT, user_prompt, endpoint="chat", json_mode=False
    )
    if not response.success or not response.text:
        logger.error(f"Chat answer failed for policy {policy.id}: {response.error_message}")
        return _message("llm_failed", "Sorry, I couldn't answer that right now.")
    return response.text.strip()


async def chat(
    repository: PolicyRepository,
    llm: LLMClient,
    customer_id: str,
    message: str,
    last_policy_id: str | None = None,
    clarification: str | None = None,
) -> ChatReply:
    """
    One chat turn

    Raises:
        RecordNotFoundError: unknown customer
    """
    if repository.get_customer(customer_id) is None:
        raise RecordNotFoundError(f"Customer not found: {customer_id}")

    policies = repository.list_policies(customer_id)
    if not policies:
        return ChatReply(
            reply=_message("no_policies", "This customer has no uploaded policies yet."),
            selected_policy_id=None,
        )

    selection = await select_policy(
        message, policies, llm, last_policy_id=last_policy_id, clarification=clarification
    )
    if selection.needs_clarification:
        return ChatReply(
            reply=None,
            selected_policy_id=None,
            clarification=True,
            question=selection.question,
        )

    policy = selection.policy
    logger.info(f"[CHAT] customer={customer_id} policy={policy.id} q={truncate_text(message, 60)!r}")
    reply = await answer_question(repository, llm, policy, message)
    return ChatReply(reply=reply, selected_policy_id=policy.id)

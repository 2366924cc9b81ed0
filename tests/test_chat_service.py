"""
Policy chat tests

Policy selection (last_policy_id / single policy / LLM), soft-fail answers
"""

import asyncio

import pytest

from services.llm.client import FakeLLMClient
from services.retrieval.chat_service import chat, select_policy
from services.storage.records import RecordNotFoundError


def _customer_with_policies(repo, count):
    customer = repo.create_customer("Acme")
    policies = [
        repo.insert_policy(
            customer.id, f"schedule_{i}.pdf", f"policies/{i}.pdf",
            f"Schedule {i}: Professional Indemnity limit ${i}m",
            f"Insurer {i}", f"V{i}",
        )
        for i in range(count)
    ]
    return customer, policies


class TestSelectPolicy:
    """select_policy()"""

    def test_last_policy_wins(self, repo):
        """last_policy_id in the customer's list -> no LLM call"""
        _, policies = _customer_with_policies(repo, 3)
        llm = FakeLLMClient()

        selection = asyncio.run(select_policy("limit?", policies, llm, last_policy_id=policies[2].id))

        assert selection.policy.id == policies[2].id
        assert llm.call_count == 0

    def test_single_policy_auto(self, repo):
        _, policies = _customer_with_policies(repo, 1)
        llm = FakeLLMClient()

        selection = asyncio.run(select_policy("limit?", policies, llm))

        assert selection.policy.id == policies[0].id
        assert llm.call_count == 0

    def test_llm_picks(self, repo):
        _, policies = _customer_with_policies(repo, 2)
        llm = FakeLLMClient({"select_policy": {"policyId": policies[1].id}})

        selection = asyncio.run(select_policy("the second one", policies, llm))

        assert selection.policy.id == policies[1].id
        assert policies[0].id in llm.call_history[0]["user_prompt"]

    def test_foreign_id_means_unclear(self, repo):
        """id outside the customer's list -> clarification"""
        _, policies = _customer_with_policies(repo, 2)
        llm = FakeLLMClient({"select_policy": {"policyId": "someone-else"}})

        selection = asyncio.run(select_policy("?", policies, llm))

        assert selection.needs_clarification
        assert selection.question

    @pytest.mark.parametrize("chosen", [["p-1", "p-2"], {"id": "p-1"}, 42])
    def test_non_string_id_means_unclear(self, repo, chosen):
        """policyId of the wrong type -> clarification, no TypeError"""
        _, policies = _customer_with_policies(repo, 2)
        llm = FakeLLMClient({"select_policy": {"policyId": chosen}})

        selection = asyncio.run(select_policy("?", policies, llm))

        assert selection.needs_clarification

    def test_model_question_passed_through(self, repo):
        _, policies = _customer_with_policies(repo, 2)
        llm = FakeLLMClient({"select_policy": {
            "policyId": None,
            "needs_clarification": True,
            "clarification_question": "The PI or the cyber policy?",
        }})

        selection = asyncio.run(select_policy("?", policies, llm))

        assert selection.question == "The PI or the cyber policy?"

    def test_clarification_included(self, repo):
        """user's clarification goes into the prompt"""
        _, policies = _customer_with_policies(repo, 2)
        llm = FakeLLMClient({"select_policy": {"policyId": policies[0].id}})

        asyncio.run(select_policy("?", policies, llm, clarification="the first upload"))

        assert "the first upload" in llm.call_history[0]["user_prompt"]


class TestChat:
    """chat()"""

    def test_answer(self, repo):
        """selected policy answered from its own text"""
        customer, policies = _customer_with_policies(repo, 1)
        llm = FakeLLMClient({"chat": "Your PI limit is $0m."})

        reply = asyncio.run(chat(repo, llm, customer.id, "What is the professional indemnity limit?"))

        assert reply.reply == "Your PI limit is $0m."
        assert reply.selected_policy_id == policies[0].id
        assert reply.clarification is False
        prompt = llm.call_history[0]["user_prompt"]
        assert "Professional Indemnity limit $0m" in prompt
        assert llm.call_history[0]["json_mode"] is False

    def test_includes_wording_context(self, repo):
        customer, policies = _customer_with_policies(repo, 1)
        wording = repo.insert_wording("Insurer 0", "V0", None, "Exclusion 4.2: asbestos claims.")
        repo.attach_wording(policies[0].id, wording.id)
        llm = FakeLLMClient({"chat": "Asbestos is excluded."})

        asyncio.run(chat(repo, llm, customer.id, "Are asbestos claims excluded?"))

        assert "Exclusion 4.2" in llm.call_history[0]["user_prompt"]

    def test_clarification_reply(self, repo):
        customer, _ = _customer_with_policies(repo, 2)
        llm = FakeLLMClient({"select_policy": {"needs_clarification": True}})

        reply = asyncio.run(chat(repo, llm, customer.id, "What's covered?"))

        assert reply.clarification is True
        assert reply.reply is None
        assert reply.question

    def test_llm_failure_soft(self, repo):
        """answer failure -> fixed reply, no exception"""
        customer, policies = _customer_with_policies(repo, 1)

        reply = asyncio.run(chat(repo, FakeLLMClient(), customer.id, "limit?"))

        assert reply.reply
        assert reply.selected_policy_id == policies[0].id

    def test_no_policies(self, repo):
        customer = repo.create_customer("Empty")

        reply = asyncio.run(chat(repo, FakeLLMClient(), customer.id, "hi"))

        assert reply.selected_policy_id is None
        assert "no uploaded policies" in reply.reply

    def test_unknown_customer(self, repo):
        with pytest.raises(RecordNotFoundError):
            asyncio.run(chat(repo, FakeLLMClient(), "missing", "hi"))

"""
Chat API Router

POST /chat - question about one of a customer's policies

Soft-fail: LLM errors produce a fixed reply, never a 5xx.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.dependencies import get_llm, get_store
from services.llm.client import LLMClient
from services.retrieval.chat_service import chat
from services.storage.records import PolicyRepository, RecordNotFoundError

router = APIRouter(tags=["chat"])


class ChatRequest(BaseModel):
    """Chat turn"""
    message: str = Field(..., min_length=1, description="User question")
    customer_id: str = Field(..., min_length=1, description="Customer whose policies are discussed")
    last_policy_id: str | None = Field(None, description="Policy selected in the previous turn")
    clarification: str | None = Field(None, description="Answer to a clarification question")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "message": "What is the professional indemnity limit?",
                    "customer_id": "9b2f6c1e-2d7a-4b8e-9c1f-3a5d7e9b1c2d",
                    "last_policy_id": None,
                    "clarification": None,
                }
            ]
        }
    }


class ChatResponse(BaseModel):
    """Chat reply or clarification question"""
    reply: str | None
    selected_policy_id: str | None
    clarification: bool = False
    question: str | None = None


@router.post("/chat", response_model=ChatResponse)
async def chat_endpoint(
    request: ChatRequest,
    store: PolicyRepository = Depends(get_store),
    llm: LLMClient = Depends(get_llm),
) -> ChatResponse:
    """
    Errors:
        - 404: customer not found
    """
    try:
        reply = await chat(
            store,
            llm,
            customer_id=request.customer_id,
            message=request.message,
            last_policy_id=request.last_policy_id,
            clarification=request.clarification,
        )
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Customer not found")

    return ChatResponse(**reply.to_dict())

"""
LLM Client

OpenAI chat-completions wrapper with timeout, retry, soft-fail

Principles:
- failures never raise to the caller; they come back as LLMResponse(success=False)
- JSON mode strips markdown fences before parsing
- callers receive the client through injection (FakeLLMClient in tests)
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


# =============================================================================
# Environment
# =============================================================================

def is_llm_enabled() -> bool:
    """LLM calls enabled"""
    return os.environ.get("LLM_ENABLED", "1") == "1"


def get_llm_model() -> str:
    """Default model (extraction, chat)"""
    return os.environ.get("LLM_MODEL", "gpt-4o-mini")


def get_llm_compare_model() -> str:
    """Model for schedule vs wording comparison"""
    return os.environ.get("LLM_COMPARE_MODEL", "gpt-4o")


def get_llm_timeout() -> float:
    """Per-call timeout (seconds)"""
    return float(os.environ.get("LLM_TIMEOUT", "60"))


def get_llm_max_retries() -> int:
    """Retries after the first attempt"""
    return int(os.environ.get("LLM_MAX_RETRIES", "1"))


# =============================================================================
# JSON helpers
# =============================================================================

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` fences the model sometimes adds"""
    return _FENCE_RE.sub("", text).strip()


def parse_json_content(text: str) -> dict[str, Any]:
    """
    Parse a model reply as a JSON object

    Raises:
        json.JSONDecodeError: not JSON
        ValueError: JSON but not an object
    """
    data = json.loads(strip_code_fences(text))
    if not isinstance(data, dict):
        raise ValueError("LLM JSON reply is not an object")
    return data


# =============================================================================
# Metrics
# =============================================================================

# most recent calls kept per client
METRICS_HISTORY_SIZE = 200


@dataclass
class LLMCallMetrics:
    """LLM call metrics"""
    call_id: str
    endpoint: str
    start_time: float = 0.0
    end_time: float = 0.0
    latency_ms: float = 0.0
    success: bool = False
    error: str | None = None
    retry_count: int = 0
    input_chars: int = 0

    def finish(self, success: bool, error: str | None = None) -> None:
        """Mark the call finished"""
        self.end_time = time.time()
        self.latency_ms = (self.end_time - self.start_time) * 1000
        self.success = success
        self.error = error


# =============================================================================
# Response / Protocol
# =============================================================================

@dataclass
class LLMResponse:
    """
    LLM reply

    data: parsed object (json_mode)
    text: raw reply text (always set when the model answered)
    """
    success: bool
    data: dict[str, Any] | None = None
    text: str | None = None
    error_code: str | None = None
    error_message: str | None = None


class LLMCallError(RuntimeError):
    """Raised by callers that cannot continue without a successful LLM reply"""

    def __init__(self, response: LLMResponse, endpoint: str):
        super().__init__(response.error_message or f"LLM call failed: {endpoint}")
        self.endpoint = endpoint
        self.error_code = response.error_code or "LLM_FAILED"
        self.raw = response.text


@runtime_checkable
class LLMClient(Protocol):
    """LLM client protocol"""

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        endpoint: str,
        json_mode: bool = True,
        model: str | None = None,
    ) -> LLMResponse:
        ...


# =============================================================================
# OpenAI
# =============================================================================

class OpenAILLMClient:
    """
    OpenAI client

    - timeout, retry, exponential backoff
    - soft-fail: LLMResponse(success=False, error_code=...)
    """

    def __init__(
        self,
        model: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        client: Any = None,
    ):
        self.model = model or get_llm_model()
        self.timeout = timeout or get_llm_timeout()
        self.max_retries = max_retries if max_retries is not None else get_llm_max_retries()
        self.metrics_history: Deque[LLMCallMetrics] = deque(maxlen=METRICS_HISTORY_SIZE)
        self._call_counter = 0
        self._client = client

    def _get_client(self):
        """Lazy AsyncOpenAI construction (reads OPENAI_API_KEY)"""
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI()
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        endpoint: str,
        json_mode: bool = True,
        model: str | None = None,
    ) -> LLMResponse:
        """
        Call the model

        Args:
            system_prompt: system prompt
            user_prompt: user prompt
            endpoint: caller name for logs ("extract_document", "compare", ...)
            json_mode: request and parse a JSON object
            model: override the default model

        Returns:
            LLMResponse
        """
        if not is_llm_enabled():
            logger.info(f"LLM disabled, skipping {endpoint}")
            return LLMResponse(
                success=False,
                error_code="DISABLED",
                error_message="LLM is disabled (LLM_ENABLED=0)",
            )

        self._call_counter += 1
        metrics = LLMCallMetrics(
            call_id=f"llm_{self._call_counter}",
            endpoint=endpoint,
            start_time=time.time(),
            input_chars=len(system_prompt) + len(user_prompt),
        )

        last_error: str | None = None
        last_text: str | None = None
        error_code = "LLM_FAILED"

        for attempt in range(self.max_retries + 1):
            metrics.retry_count = attempt

            try:
                text = await self._call_openai(system_prompt, user_prompt, json_mode, model)
                last_text = text
                data = parse_json_content(text) if json_mode else None

                metrics.finish(success=True)
                self.metrics_history.append(metrics)
                logger.info(
                    f"LLM call success: {endpoint} "
                    f"latency={metrics.latency_ms:.0f}ms chars={metrics.input_chars}"
                )
                return LLMResponse(success=True, data=data, text=text)

            except asyncio.TimeoutError:
                last_error = "timeout"
                error_code = "LLM_FAILED"
                logger.warning(
                    f"LLM timeout: {endpoint} (attempt {attempt + 1}/{self.max_retries + 1})"
                )
            except (json.JSONDecodeError, ValueError) as e:
                last_error = f"json_parse_error: {e}"
                error_code = "INVALID_JSON"
                logger.warning(f"LLM JSON parse error: {endpoint}: {e}")
            except Exception as e:
                last_error = str(e)
                error_code = "LLM_FAILED"
                logger.warning(
                    f"LLM error: {endpoint} (attempt {attempt + 1}/{self.max_retries + 1}): {e}"
                )

            if attempt < self.max_retries:
                await asyncio.sleep(2 ** attempt)

        metrics.finish(success=False, error=last_error)
        self.metrics_history.append(metrics)
        logger.error(
            f"LLM call failed after {self.max_retries + 1} attempts: {endpoint}: {last_error}"
        )

        return LLMResponse(
            success=False,
            text=last_text,
            error_code=error_code,
            error_message=f"LLM call failed: {last_error}",
        )

    def get_metrics_summary(self) -> dict:
        """Summary over the retained call metrics"""
        if not self.metrics_history:
            return {
                "total_calls": 0,
                "success_count": 0,
                "failure_count": 0,
                "total_latency_ms": 0,
                "avg_latency_ms": 0,
                "total_retries": 0,
            }

        success_count = sum(1 for m in self.metrics_history if m.success)
        total_latency = sum(m.latency_ms for m in self.metrics_history)

        return {
            "total_calls": len(self.metrics_history),
            "success_count": success_count,
            "failure_count": len(self.metrics_history) - success_count,
            "total_latency_ms": total_latency,
            "avg_latency_ms": total_latency / len(self.metrics_history),
            "total_retries": sum(m.retry_count for m in self.metrics_history),
        }

    async def _call_openai(
        self,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool,
        model: str | None,
    ) -> str:
        """Actual OpenAI API call"""
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": 0.0,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await asyncio.wait_for(
            client.chat.completions.create(**kwargs),
            timeout=self.timeout,
        )

        content = response.choices[0].message.content
        if not content:
            raise RuntimeError("Empty response from LLM")
        return content


# =============================================================================
# Test doubles
# =============================================================================

class DisabledLLMClient:
    """Client that never calls out"""

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        endpoint: str,
        json_mode: bool = True,
        model: str | None = None,
    ) -> LLMResponse:
        return LLMResponse(
            success=False,
            error_code="DISABLED",
            error_message="LLM is disabled",
        )


class FakeLLMClient:
    """
    Fake LLM client for tests

    responses: endpoint -> reply
      - dict: JSON reply
      - str: raw reply text (parsed when json_mode)
      - list: successive replies for repeated calls
      - None: simulated LLM failure
    """

    def __init__(self, responses: dict[str, Any] | None = None):
        self.responses = responses or {}
        self.call_count = 0
        self.call_history: list[dict[str, Any]] = []

    def _next_reply(self, endpoint: str) -> Any:
        reply = self.responses.get(endpoint)
        if isinstance(reply, list):
            return reply.pop(0) if reply else None
        return reply

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        endpoint: str,
        json_mode: bool = True,
        model: str | None = None,
    ) -> LLMResponse:
        self.call_count += 1
        self.call_history.append({
            "endpoint": endpoint,
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "json_mode": json_mode,
            "model": model,
        })

        reply = self._next_reply(endpoint)
        if reply is None:
            return LLMResponse(
                success=False,
                error_code="LLM_FAILED",
                error_message=f"No fake reply for {endpoint}",
            )

        if isinstance(reply, dict):
            return LLMResponse(success=True, data=reply, text=json.dumps(reply))

        text = str(reply)
        if not json_mode:
            return LLMResponse(success=True, text=text)

        try:
            return LLMResponse(success=True, data=parse_json_content(text), text=text)
        except (json.JSONDecodeError, ValueError) as e:
            return LLMResponse(
                success=False,
                text=text,
                error_code="INVALID_JSON",
                error_message=f"LLM call failed: json_parse_error: {e}",
            )


# shared instance handed out through get_llm_client()
_llm_client: OpenAILLMClient | None = None


def get_llm_client() -> LLMClient:
    """
    LLM client for the current settings

    LLM_ENABLED=0: DisabledLLMClient
    otherwise: process-wide OpenAILLMClient
    """
    if not is_llm_enabled():
        return DisabledLLMClient()

    global _llm_client
    if _llm_client is None:
        _llm_client = OpenAILLMClient()
    return _llm_client

"""
LiteLLM decision client.

Requests one structured Decision per step by exposing the composed AgentOutput
schema as the only callable function and forcing the model to call it. The
function arguments are decoded against the schema; anything that does not
conform raises DecodeError. Transport failures are retried according to a
RetryPolicy, and every request is raced against the task's cancellation
token.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any

import litellm
import structlog

from pagepilot.core.domain.cancellation import CancellationToken
from pagepilot.core.domain.errors import CancellationError, DecodeError, ModelClientError
from pagepilot.core.domain.macro_tool import MACRO_TOOL_NAME, DecisionSchema
from pagepilot.core.domain.models import DecisionResult, TokenUsage

DEFAULT_RETRY_ON_ERRORS = [
    "RateLimitError",
    "APIConnectionError",
    "Timeout",
    "ServiceUnavailableError",
    "InternalServerError",
]


@dataclass
class RetryPolicy:
    """Retry policy configuration."""

    max_attempts: int = 3
    backoff_multiplier: float = 2.0
    timeout: int = 60
    retry_on_errors: list[str] = field(default_factory=lambda: list(DEFAULT_RETRY_ON_ERRORS))


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


class LiteLLMDecisionClient:
    """
    Model client backed by litellm.acompletion.

    Works with any provider LiteLLM supports; `base_url` points it at an
    OpenAI-compatible endpoint.
    """

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.retry_policy = retry_policy or RetryPolicy()
        self.logger = structlog.get_logger().bind(component="litellm_client", model=model)

    def _request_params(self, messages: list[dict[str, Any]], schema: DecisionSchema) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "tools": [schema.to_function_tool()],
            "tool_choice": {"type": "function", "function": {"name": MACRO_TOOL_NAME}},
            "timeout": self.retry_policy.timeout,
        }
        if self.api_key:
            params["api_key"] = self.api_key
        if self.base_url:
            params["api_base"] = self.base_url
        if self.temperature is not None:
            params["temperature"] = self.temperature
        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens
        return params

    async def invoke(
        self,
        messages: list[dict[str, Any]],
        schema: DecisionSchema,
        token: CancellationToken,
    ) -> DecisionResult:
        """
        Request and decode one decision.

        Raises:
            CancellationError: The token was cancelled before or during the call
            DecodeError: The model output does not conform to the schema
            ModelClientError: The request failed after all retry attempts
        """
        params = self._request_params(messages, schema)
        response = await self._complete_with_retry(params, token)
        arguments = self._extract_arguments(response)
        decision = schema.decode(arguments)
        return DecisionResult(decision=decision, usage=self._extract_usage(response))

    async def _complete_with_retry(self, params: dict[str, Any], token: CancellationToken) -> Any:
        attempts = max(1, self.retry_policy.max_attempts)
        for attempt in range(attempts):
            token.raise_if_cancelled()
            start_time = time.time()
            self.logger.info(
                "llm_completion_started",
                attempt=attempt + 1,
                message_count=len(params["messages"]),
            )
            try:
                response = await token.run(litellm.acompletion(**params))
            except CancellationError:
                self.logger.info("llm_completion_cancelled", reason=token.reason)
                raise
            except Exception as e:
                error_type = type(e).__name__
                error_msg = str(e)
                should_retry = attempt < attempts - 1 and any(
                    err_type in error_type or err_type in error_msg
                    for err_type in self.retry_policy.retry_on_errors
                )
                if not should_retry:
                    self.logger.error(
                        "llm_completion_failed",
                        error_type=error_type,
                        error=error_msg[:200],
                        attempts=attempt + 1,
                    )
                    raise ModelClientError(f"{error_type}: {error_msg}") from e

                backoff_time = self.retry_policy.backoff_multiplier**attempt
                self.logger.warning(
                    "llm_completion_retry",
                    error_type=error_type,
                    attempt=attempt + 1,
                    backoff_seconds=backoff_time,
                )
                await token.run(asyncio.sleep(backoff_time))
                continue

            self.logger.info(
                "llm_completion_success",
                latency_ms=int((time.time() - start_time) * 1000),
            )
            return response

        raise ModelClientError("Max retries exceeded")

    @staticmethod
    def _extract_arguments(response: Any) -> Any:
        """Arguments of the forced AgentOutput call, or JSON content as a fallback."""
        choices = _get(response, "choices") or []
        if not choices:
            raise DecodeError("Model response has no choices")
        message = _get(choices[0], "message")

        tool_calls = _get(message, "tool_calls") or []
        for call in tool_calls:
            function = _get(call, "function")
            name = _get(function, "name")
            if name in (None, MACRO_TOOL_NAME):
                arguments = _get(function, "arguments")
                if isinstance(arguments, str):
                    try:
                        return json.loads(arguments)
                    except json.JSONDecodeError as e:
                        raise DecodeError(f"Tool call arguments are not valid JSON: {e}") from e
                return arguments

        content = _get(message, "content")
        if content:
            try:
                return json.loads(_strip_code_fence(content))
            except json.JSONDecodeError as e:
                raise DecodeError(f"Model did not call {MACRO_TOOL_NAME} and returned no JSON: {e}") from e

        raise DecodeError(f"Model did not call {MACRO_TOOL_NAME}")

    @staticmethod
    def _extract_usage(response: Any) -> TokenUsage:
        usage = _get(response, "usage")
        if usage is None:
            return TokenUsage()
        return TokenUsage(
            prompt_tokens=_get(usage, "prompt_tokens", 0) or 0,
            completion_tokens=_get(usage, "completion_tokens", 0) or 0,
            total_tokens=_get(usage, "total_tokens", 0) or 0,
            cached_tokens=_get(_get(usage, "prompt_tokens_details"), "cached_tokens"),
            reasoning_tokens=_get(_get(usage, "completion_tokens_details"), "reasoning_tokens"),
        )

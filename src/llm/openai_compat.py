from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any


logger = logging.getLogger(__name__)


class LLMConfigError(RuntimeError):
    pass


class LLMRequestError(RuntimeError):
    """The upstream chat-completions call failed (network, auth, rate limit...)."""


@dataclass(frozen=True)
class ChatCompletionResult:
    content: str
    raw: dict[str, Any]
    tool_calls: list[dict[str, Any]]


def _normalize_tool_call(tc: Any, *, index: int) -> dict[str, Any]:
    """Reduce an SDK tool call to the fields the API accepts when replayed."""
    fn = getattr(tc, "function", None)
    return {
        "id": str(getattr(tc, "id", None) or f"tool_call_{index}"),
        "type": "function",
        "function": {
            "name": str(getattr(fn, "name", None) or ""),
            "arguments": str(getattr(fn, "arguments", None) or ""),
        },
    }


class OpenAICompatibleChatClient:
    """Chat-completions client for the recipe agent.

    Any OpenAI-compatible gateway works (`OPENAI_API_BASE`); the model is
    chosen by config or `LLM_MODEL`.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self.base_url = (
            base_url
            or os.getenv("OPENAI_API_BASE")
            or os.getenv("OPENAI_BASE_URL")
            or "https://api.openai.com/v1"
        )
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or os.getenv("LLM_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o"
        self.timeout_s = timeout_s

        if not self.api_key:
            raise LLMConfigError("Missing OPENAI_API_KEY (or provide api_key explicitly).")

        try:
            from openai import OpenAI, OpenAIError  # type: ignore
        except Exception as e:
            raise LLMConfigError("Missing dependency: openai. Install it in the runtime environment.") from e

        self._client = OpenAI(base_url=self.base_url, api_key=self.api_key, timeout=self.timeout_s)
        self._request_errors: tuple[type[BaseException], ...] = (OpenAIError,)

    def chat_messages(
        self,
        *,
        messages: list[dict[str, Any]],
        temperature: float,
        extra: dict[str, Any] | None = None,
    ) -> ChatCompletionResult:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": float(temperature),
        }
        if extra:
            payload.update(extra)

        try:
            resp = self._client.chat.completions.create(**payload)
        except self._request_errors as e:
            raise LLMRequestError(f"LLM request failed: {e}") from e

        raw = resp.model_dump()
        if not resp.choices:
            raise LLMRequestError("LLM response contained no choices")
        msg = resp.choices[0].message
        content = (msg.content or "").strip()

        tool_calls: list[dict[str, Any]] = []
        if getattr(msg, "tool_calls", None):
            tool_calls = [_normalize_tool_call(tc, index=i) for i, tc in enumerate(msg.tool_calls or [])]
        elif getattr(msg, "function_call", None):
            # Older gateways still answer with the single legacy function_call.
            fc = msg.function_call
            tool_calls = [
                {
                    "id": "legacy_function_call",
                    "type": "function",
                    "function": {
                        "name": getattr(fc, "name", None) or "",
                        "arguments": getattr(fc, "arguments", None) or "",
                    },
                }
            ]

        usage = raw.get("usage") or {}
        logger.debug(
            "chat.completions model=%s messages=%d tool_calls=%d prompt_tokens=%s completion_tokens=%s",
            self.model,
            len(messages),
            len(tool_calls),
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
        )
        return ChatCompletionResult(content=content, raw=raw, tool_calls=tool_calls)

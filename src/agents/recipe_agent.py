from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from src.llm.openai_compat import LLMRequestError
from src.tools.registry import TOOL_DEFINITIONS, UnknownToolError, execute_tool
from src.utils.json_extract import PayloadRecoveryError, RecoveredPayload, recover_payload

from .types import AgentContext


logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "default"
_ALLOWED_ROLES = {"user", "assistant", "system"}


class AgentError(RuntimeError):
    """The agent could not produce a recipe payload.

    `unparsable` is set only when the run ended right after a failed recovery
    of the model's final answer.
    """

    def __init__(self, message: str, *, recovery_failures: int = 0, unparsable: bool = False) -> None:
        super().__init__(message)
        self.recovery_failures = recovery_failures
        self.unparsable = unparsable


class AgentInputError(ValueError):
    pass


def _now_ts() -> float:
    return time.time()


@dataclass(frozen=True)
class AgentResult:
    session_id: str
    payload: RecoveredPayload
    iterations: int
    tool_calls: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed": True,
            "sessionId": self.session_id,
            "data": self.payload.to_dict(),
            "iterations": self.iterations,
            "toolCalls": self.tool_calls,
        }


def _normalize_messages(messages: Any) -> list[dict[str, Any]]:
    if not isinstance(messages, list) or not messages:
        raise AgentInputError("messages[] is required")
    out: list[dict[str, Any]] = []
    for i, m in enumerate(messages):
        if not isinstance(m, dict):
            raise AgentInputError(f"messages[{i}] must be an object")
        role = str(m.get("role") or "").strip()
        if role not in _ALLOWED_ROLES:
            raise AgentInputError(f"messages[{i}].role must be one of {sorted(_ALLOWED_ROLES)}")
        content = m.get("content")
        if not isinstance(content, str):
            raise AgentInputError(f"messages[{i}].content must be a string")
        out.append({"role": role, "content": content})
    return out


class RecipeAgent:
    """Tool-using recipe generation loop.

    Grounds the model in the catalog via tool calls, then recovers the final
    JSON answer. Unparsable answers are sent back with a correction prompt;
    tool failures are reported to the model instead of aborting the run.
    """

    name = "recipe_agent"

    def _run_tool_call(self, ctx: AgentContext, tc: dict[str, Any], *, iteration: int) -> dict[str, Any]:
        tc_id = str(tc.get("id") or f"tool_call_{iteration}")
        fn = tc.get("function") or {}
        name = str(fn.get("name") or "").strip()
        args_raw = fn.get("arguments") or ""

        result: Any
        try:
            result = execute_tool(ctx.store, name, args_raw)
        except UnknownToolError as e:
            result = {"error": str(e)}
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e, exc_info=True)
            result = {"error": f"Failed to execute {name}: {e}"}

        content = json.dumps(result, ensure_ascii=False)
        ctx.trace(
            "tool_result",
            {"ts": _now_ts(), "iteration": iteration, "tool": name, "arguments": args_raw, "result": content[:200]},
        )
        return {"role": "tool", "tool_call_id": tc_id, "content": content}

    def run(
        self,
        ctx: AgentContext,
        messages: list[dict[str, Any]],
        *,
        session_id: str | None = None,
    ) -> AgentResult:
        history = _normalize_messages(messages)
        session_key = (session_id or "").strip() or DEFAULT_SESSION_KEY
        cfg = ctx.config
        system = {"role": "system", "content": cfg.prompts.system}

        tool_calls_total = 0
        recovery_failures = 0
        last_answer_unparsable = False
        for iteration in range(1, int(cfg.agent.max_iterations) + 1):
            ctx.trace(
                "llm_request",
                {"ts": _now_ts(), "iteration": iteration, "model": ctx.llm.model, "n_messages": len(history) + 1},
            )
            try:
                res = ctx.llm.chat_messages(
                    messages=[system] + history,
                    temperature=cfg.agent.temperature,
                    extra={"tools": TOOL_DEFINITIONS, "tool_choice": "auto"},
                )
            except LLMRequestError as e:
                raise AgentError(str(e), recovery_failures=recovery_failures) from e
            ctx.trace(
                "llm_response",
                {"ts": _now_ts(), "iteration": iteration, "content": res.content, "tool_calls": res.tool_calls},
            )

            if res.tool_calls:
                history.append({"role": "assistant", "content": res.content or None, "tool_calls": res.tool_calls})
                for tc in res.tool_calls:
                    history.append(self._run_tool_call(ctx, tc, iteration=iteration))
                    tool_calls_total += 1
                last_answer_unparsable = False
                continue

            if not res.content.strip():
                raise AgentError("Model returned empty response", recovery_failures=recovery_failures)

            try:
                payload = recover_payload(res.content, preview_chars=cfg.recovery.preview_chars)
            except PayloadRecoveryError as e:
                recovery_failures += 1
                last_answer_unparsable = True
                logger.warning(
                    "Recipe JSON parse failed (%s), asking model to fix. Raw (first %d): %s",
                    e,
                    cfg.recovery.log_preview_chars,
                    res.content[: cfg.recovery.log_preview_chars],
                )
                history.append({"role": "assistant", "content": res.content})
                history.append({"role": "user", "content": cfg.prompts.fix_json})
                continue

            ctx.sessions.put(session_key, payload)
            logger.info(
                "Recipe agent completed session=%s iterations=%d tool_calls=%d",
                session_key,
                iteration,
                tool_calls_total,
            )
            return AgentResult(
                session_id=session_key,
                payload=payload,
                iterations=iteration,
                tool_calls=tool_calls_total,
            )

        raise AgentError(
            "Agent exceeded max iterations without completing",
            recovery_failures=recovery_failures,
            unparsable=last_answer_unparsable,
        )

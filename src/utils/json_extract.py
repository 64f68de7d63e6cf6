from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any


logger = logging.getLogger(__name__)

PREVIEW_CHARS = 2000

# First fenced block only (non-greedy), optional `json` tag. Backtick fences may
# open mid-line ("Sure! ```json"); tilde fences only count on their own lines.
_FENCE_RE = re.compile(
    r"```[ \t]*(?:json)?[ \t]*\r?\n?(?P<body>.*?)```"
    r"|^~~~[ \t]*(?:json)?[ \t]*\r?\n(?P<tilde_body>.*?)\r?\n~~~[ \t]*$",
    re.IGNORECASE | re.DOTALL | re.MULTILINE,
)
_WHITESPACE_RE = re.compile(r"\s+")

_RECIPE_KEYS = ("recipe", "json", "data")


class PayloadRecoveryError(ValueError):
    pass


class EmptyPayloadError(PayloadRecoveryError):
    """Raised when the model returned nothing to recover."""

    def __init__(self, message: str = "No recipe payload returned") -> None:
        super().__init__(message)


class UnparsablePayloadError(PayloadRecoveryError):
    """Raised when every recovery strategy failed.

    Carries bounded previews of the raw and cleaned text for logging only.
    """

    def __init__(self, message: str, *, raw_preview: str, cleaned_preview: str) -> None:
        super().__init__(message)
        self.raw_preview = raw_preview
        self.cleaned_preview = cleaned_preview


@dataclass(frozen=True)
class MissingSuggestions:
    ingredients: list[Any] = field(default_factory=list)
    hacks_or_tips: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"ingredients": list(self.ingredients), "hacksOrTips": list(self.hacks_or_tips)}


@dataclass(frozen=True)
class RecoveredPayload:
    recipe: Any
    missing_suggestions: MissingSuggestions

    def to_dict(self) -> dict[str, Any]:
        return {"recipe": self.recipe, "missingSuggestions": self.missing_suggestions.to_dict()}


def _preview(text: str, limit: int) -> str:
    return text[: max(0, int(limit))]


def strip_code_fence(text: str) -> str:
    m = _FENCE_RE.search(text)
    if m is None:
        return text
    body = m.group("body") if m.group("body") is not None else m.group("tilde_body")
    return body.strip()


def trim_to_braces(text: str) -> str:
    """Drop commentary before the first `{` and after the last `}`."""
    if not text.startswith("{"):
        start = text.find("{")
        if start != -1:
            text = text[start:]
    end = text.rfind("}")
    if end != -1:
        text = text[: end + 1]
    return text


def _skip_insignificant(text: str, i: int) -> int:
    """Index of the next char after whitespace and `//` comments, from `i`."""
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
        elif text.startswith("//", i):
            nl = text.find("\n", i)
            if nl == -1:
                return n
            i = nl
        else:
            break
    return i


def repair_json_syntax(text: str) -> str:
    """Drop `//` line comments and trailing commas, leaving string literals untouched."""
    out: list[str] = []
    in_string = False
    escaped = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
            continue
        if ch == "/" and text.startswith("//", i):
            # Skip to end of line; the newline itself is kept.
            nl = text.find("\n", i)
            if nl == -1:
                break
            i = nl
            continue
        if ch == ",":
            nxt = _skip_insignificant(text, i + 1)
            if nxt < n and text[nxt] in "]}":
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_payload_text(raw: str) -> str:
    """Run the textual recovery stages in order, each on the previous output."""
    text = raw.strip()
    text = strip_code_fence(text)
    text = trim_to_braces(text)
    return repair_json_syntax(text)


def select_recipe(parsed: dict[str, Any]) -> Any:
    for key in _RECIPE_KEYS:
        if key in parsed:
            return parsed[key]
    return parsed


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def extract_missing_suggestions(parsed: dict[str, Any]) -> MissingSuggestions:
    raw = parsed.get("missingSuggestions")
    if not isinstance(raw, dict):
        return MissingSuggestions()
    return MissingSuggestions(
        ingredients=_as_list(raw.get("ingredients")),
        hacks_or_tips=_as_list(raw.get("hacksOrTips")),
    )


def recover_payload(raw: str | None, *, preview_chars: int = PREVIEW_CHARS) -> RecoveredPayload:
    """Recover a `{recipe, missingSuggestions}` record from raw model output.

    The result is guaranteed to come from a JSON object; the recipe itself is
    not validated (it may even be a primitive).
    """
    if not raw:
        raise EmptyPayloadError()

    cleaned = clean_payload_text(raw)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as first_err:
        # Unescaped newlines inside string values are the usual culprit.
        flattened = collapse_whitespace(cleaned)
        logger.debug("Recipe payload parse failed (%s); retrying with collapsed whitespace.", first_err)
        try:
            parsed = json.loads(flattened)
        except json.JSONDecodeError as e:
            raise UnparsablePayloadError(
                f"Recipe JSON returned by model is invalid: {e}",
                raw_preview=_preview(raw, preview_chars),
                cleaned_preview=_preview(flattened, preview_chars),
            ) from e

    if not isinstance(parsed, dict):
        raise UnparsablePayloadError(
            f"Recipe JSON returned by model is not an object (got {type(parsed).__name__}).",
            raw_preview=_preview(raw, preview_chars),
            cleaned_preview=_preview(cleaned, preview_chars),
        )

    return RecoveredPayload(
        recipe=select_recipe(parsed),
        missing_suggestions=extract_missing_suggestions(parsed),
    )

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


REPO_ROOT = Path(__file__).resolve().parents[2]

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class ConfigError(RuntimeError):
    pass


def _as_int(value: Any, *, key: str) -> int:
    try:
        return int(value)
    except Exception as e:
        raise ConfigError(f"Invalid int for {key}: {value!r}") from e


def _as_str(value: Any, *, key: str) -> str:
    if value is None:
        raise ConfigError(f"Missing required config key: {key}")
    return str(value)


def _as_float(value: Any, *, key: str) -> float:
    try:
        return float(value)
    except Exception as e:
        raise ConfigError(f"Invalid float for {key}: {value!r}") from e


def _as_positive_int(value: Any, *, key: str) -> int:
    n = _as_int(value, key=key)
    if n < 1:
        raise ConfigError(f"Invalid {key}: must be >= 1, got {n}")
    return n


def _as_log_level(value: Any, *, key: str) -> str:
    s = _as_str(value, key=key).strip().upper()
    if s not in _LOG_LEVELS:
        raise ConfigError(f"Invalid {key}: expected one of {sorted(_LOG_LEVELS)}, got {s!r}")
    return s


@dataclass(frozen=True)
class AgentConfig:
    model: str
    temperature: float
    max_iterations: int


@dataclass(frozen=True)
class RecoveryConfig:
    preview_chars: int
    log_preview_chars: int


@dataclass(frozen=True)
class SessionConfig:
    ttl_s: float
    max_entries: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str


@dataclass(frozen=True)
class PromptConfig:
    system: str
    fix_json: str


@dataclass(frozen=True)
class AppConfig:
    agent: AgentConfig
    recovery: RecoveryConfig
    sessions: SessionConfig
    logging: LoggingConfig
    prompts: PromptConfig


def default_config_path() -> Path:
    raw = os.getenv("RECIPE_AGENT_CONFIG_PATH")
    if raw:
        return Path(raw).expanduser().resolve()
    return REPO_ROOT / "config" / "default.toml"


def load_app_config(path: Path | None = None) -> AppConfig:
    cfg_path = path or default_config_path()
    if not cfg_path.exists():
        raise ConfigError(f"Config file not found: {cfg_path}")

    try:
        import tomllib  # py3.11+
    except Exception as e:
        raise ConfigError("tomllib is required (Python 3.11+).") from e

    try:
        raw = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {cfg_path}: {e}") from e

    agent = raw.get("agent", {})
    recovery = raw.get("recovery", {})
    sessions = raw.get("sessions", {})
    logging_cfg = raw.get("logging", {})
    prompts = raw.get("prompts", {})

    # Env wins over the file for the deploy-specific bits.
    model = os.getenv("LLM_MODEL") or os.getenv("OPENAI_MODEL") or agent.get("model")
    log_level = os.getenv("RECIPE_AGENT_LOG_LEVEL") or logging_cfg.get("level")

    return AppConfig(
        agent=AgentConfig(
            model=_as_str(model, key="agent.model"),
            temperature=_as_float(agent.get("temperature"), key="agent.temperature"),
            max_iterations=_as_positive_int(agent.get("max_iterations"), key="agent.max_iterations"),
        ),
        recovery=RecoveryConfig(
            preview_chars=_as_positive_int(recovery.get("preview_chars"), key="recovery.preview_chars"),
            log_preview_chars=_as_positive_int(
                recovery.get("log_preview_chars"), key="recovery.log_preview_chars"
            ),
        ),
        sessions=SessionConfig(
            ttl_s=_as_float(sessions.get("ttl_s"), key="sessions.ttl_s"),
            max_entries=_as_positive_int(sessions.get("max_entries"), key="sessions.max_entries"),
        ),
        logging=LoggingConfig(level=_as_log_level(log_level, key="logging.level")),
        prompts=PromptConfig(
            system=_as_str(prompts.get("system"), key="prompts.system"),
            fix_json=_as_str(prompts.get("fix_json"), key="prompts.fix_json"),
        ),
    )

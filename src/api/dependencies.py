from __future__ import annotations

import threading

from fastapi import Request

from src.api.errors import APIError
from src.config.load_config import AppConfig, ConfigError, load_app_config
from src.llm.openai_compat import LLMConfigError, OpenAICompatibleChatClient
from src.storage.session_cache import SessionCache


_INIT_LOCK = threading.Lock()


def get_app_config(request: Request) -> AppConfig:
    """FastAPI dependency: app config, loaded once per process and cached on `app.state`."""
    cached = getattr(request.app.state, "app_config", None)
    if isinstance(cached, AppConfig):
        return cached

    with _INIT_LOCK:
        cached2 = getattr(request.app.state, "app_config", None)
        if isinstance(cached2, AppConfig):
            return cached2
        try:
            cfg = load_app_config()
        except ConfigError as e:
            raise APIError(status_code=500, code="config_error", message=str(e)) from e
        request.app.state.app_config = cfg
        return cfg


def get_session_cache(request: Request) -> SessionCache:
    cached = getattr(request.app.state, "session_cache", None)
    if isinstance(cached, SessionCache):
        return cached

    cfg = get_app_config(request)
    with _INIT_LOCK:
        cached2 = getattr(request.app.state, "session_cache", None)
        if isinstance(cached2, SessionCache):
            return cached2
        sessions = SessionCache(ttl_s=cfg.sessions.ttl_s, max_entries=cfg.sessions.max_entries)
        request.app.state.session_cache = sessions
        return sessions


def get_llm_client(request: Request) -> OpenAICompatibleChatClient:
    """Chat client for the agent; `app.state.llm_client` may be preset (tests, custom gateways)."""
    cached = getattr(request.app.state, "llm_client", None)
    if cached is not None:
        return cached

    cfg = get_app_config(request)
    with _INIT_LOCK:
        cached2 = getattr(request.app.state, "llm_client", None)
        if cached2 is not None:
            return cached2
        try:
            llm = OpenAICompatibleChatClient(model=cfg.agent.model)
        except LLMConfigError as e:
            raise APIError(status_code=503, code="dependency_unavailable", message=str(e)) from e
        request.app.state.llm_client = llm
        return llm

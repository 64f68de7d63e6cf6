from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from src.config.load_config import AppConfig
from src.llm.openai_compat import OpenAICompatibleChatClient
from src.storage.catalog_store import CatalogStore
from src.storage.session_cache import SessionCache


logger = logging.getLogger("src.agents.trace")


@dataclass
class AgentContext:
    store: CatalogStore
    config: AppConfig
    llm: OpenAICompatibleChatClient
    sessions: SessionCache
    request_id: str = ""
    events: list[dict[str, Any]] = field(default_factory=list)

    def trace(self, event_type: str, payload: dict[str, Any]) -> None:
        """Record an agent event in memory and at DEBUG level."""
        event = {"type": event_type, **payload}
        self.events.append(event)
        logger.debug("[%s] %s %s", self.request_id or "-", event_type, payload)

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.agents.recipe_agent import AgentError, AgentInputError, RecipeAgent
from src.agents.types import AgentContext
from src.api.dependencies import get_app_config, get_llm_client, get_session_cache
from src.api.errors import APIError
from src.config.load_config import AppConfig
from src.llm.openai_compat import OpenAICompatibleChatClient
from src.storage.catalog_store import CatalogStore
from src.storage.session_cache import SessionCache


router = APIRouter()


class AgentMessage(BaseModel):
    role: str
    content: str


class RunAgentRequest(BaseModel):
    messages: list[AgentMessage] = Field(min_length=1)
    session_id: str | None = Field(default=None)


@router.post("/ai/agent")
def run_agent(
    body: RunAgentRequest,
    config: AppConfig = Depends(get_app_config),
    sessions: SessionCache = Depends(get_session_cache),
    llm: OpenAICompatibleChatClient = Depends(get_llm_client),
) -> dict[str, Any]:
    store = CatalogStore()
    try:
        ctx = AgentContext(
            store=store,
            config=config,
            llm=llm,
            sessions=sessions,
            request_id=f"req_{uuid.uuid4().hex[:12]}",
        )
        try:
            result = RecipeAgent().run(
                ctx,
                [m.model_dump() for m in body.messages],
                session_id=body.session_id,
            )
        except AgentInputError as e:
            raise APIError(status_code=400, code="invalid_argument", message=str(e)) from e
        except AgentError as e:
            message = str(e)
            if e.unparsable:
                message = "The AI response could not be understood, please retry."
            raise APIError(
                status_code=502,
                code="upstream_error",
                message=message,
                details={"reason": str(e), "recovery_failures": e.recovery_failures, "unparsable": e.unparsable},
            ) from e
        return result.to_dict()
    finally:
        store.close()


@router.get("/ai/agent/sessions/{session_id}")
def get_agent_session(session_id: str, sessions: SessionCache = Depends(get_session_cache)) -> dict[str, Any]:
    payload = sessions.get(session_id)
    if payload is None:
        raise APIError(status_code=404, code="not_found", message="Session not found.")
    return {"sessionId": session_id, "data": payload.to_dict()}


@router.delete("/ai/agent/sessions/{session_id}")
def clear_agent_session(session_id: str, sessions: SessionCache = Depends(get_session_cache)) -> dict[str, Any]:
    if sessions.delete(session_id):
        return {"success": True, "message": "Session cleared"}
    return {"success": False, "message": "Session not found"}

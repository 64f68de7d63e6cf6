from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure `import src...` works when running `pytest` from repo root without an install.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))


_ISOLATED_ENV = (
    "RECIPE_AGENT_CONFIG_PATH",
    "RECIPE_AGENT_LOG_LEVEL",
    "RECIPE_AGENT_CORS_ORIGINS",
    "LLM_MODEL",
    "OPENAI_MODEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's shell config from leaking into config/agent tests."""
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)

from __future__ import annotations

import importlib.metadata
import time
from typing import Any

from fastapi import APIRouter

from src.storage.catalog_store import SCHEMA_VERSION, CatalogStore


router = APIRouter()

# Runtime distributions declared in pyproject.toml.
DECLARED_DEPENDENCIES = ("fastapi", "pydantic", "uvicorn", "openai")


def _pkg_version(name: str) -> str | None:
    try:
        return str(importlib.metadata.version(name))
    except importlib.metadata.PackageNotFoundError:
        return None


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/version")
def version() -> dict[str, Any]:
    store = CatalogStore()
    try:
        counts = store.count_by_collection()
    finally:
        store.close()
    return {
        "service": "recipe-agent",
        "api": "v1",
        "schema_version": int(SCHEMA_VERSION),
        "deps": {name: _pkg_version(name) for name in DECLARED_DEPENDENCIES},
        "catalog": counts,
        "ts": time.time(),
    }

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import APIError, api_error_handler, unhandled_error_handler, validation_error_handler
from src.config.load_config import load_app_config
from src.storage.catalog_store import CatalogStore
from src.utils.logging_utils import setup_logging

from .routers.agent import router as agent_router
from .routers.catalog import router as catalog_router
from .routers.health import router as health_router


def _cors_origins_from_env() -> list[str]:
    raw = os.getenv("RECIPE_AGENT_CORS_ORIGINS", "").strip()
    if not raw:
        # Local admin console dev ports.
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ANN202
        cfg = load_app_config()
        app.state.app_config = cfg
        setup_logging(cfg.logging.level)
        # Create/migrate the catalog schema before serving requests.
        CatalogStore().close()
        yield

    app = FastAPI(title="recipe-agent API", version="0.1.0", lifespan=lifespan)

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins_from_env(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/api/v1", tags=["system"])
    app.include_router(catalog_router, prefix="/api/v1", tags=["catalog"])
    app.include_router(agent_router, prefix="/api/v1", tags=["ai"])

    return app


app = create_app()

"""FastAPI app factory.

Run with any ASGI server, e.g. ``uvicorn flow_editor.server.app:create_app --factory``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flow_editor import __version__
from flow_editor.editor.store import AutomationStore
from flow_editor.server.config import ServerSettings
from flow_editor.server.router import router as automations_router

logger = logging.getLogger(__name__)


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    settings = settings or ServerSettings()

    app = FastAPI(
        title="Flow Editor",
        version=__version__,
        description="REST API over marketing automation workflow documents.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.store = AutomationStore(settings.automations_state_file)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(automations_router, prefix="/api")

    logger.info(
        "Flow editor API ready",
        extra={"state_file": str(settings.automations_state_file)},
    )
    return app

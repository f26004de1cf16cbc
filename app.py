from __future__ import annotations

from typing import Dict, Optional

import httpx
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from agents.api import router as agents_router
from agents.base import ErrorReporter
from agents.clients import build_default_clients
from config import Settings, get_settings
from knowledge.api import router as knowledge_router
from knowledge.client import KnowledgeAssistClient
from metrics import REGISTRY
from observability import init_logging


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    reporter: Optional[ErrorReporter] = None,
) -> FastAPI:
    """Бэкенд дашборда: проксирует вызовы агентов через фасады.

    Приложение собирается лениво: `uvicorn --factory app:create_app`.
    """
    settings = settings or get_settings()
    app = FastAPI(title="Agent Dashboard")
    # Конфигурация передается в фасады явно, без чтения окружения на вызове.
    app.state.agent_clients = build_default_clients(settings.agents, http_client=http_client, reporter=reporter)
    app.state.knowledge_client = KnowledgeAssistClient(
        settings.agents, http_client=http_client, reporter=reporter
    )

    @app.on_event("startup")
    async def _startup() -> None:
        init_logging(settings.observability.service_name)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        for client in app.state.agent_clients.values():
            await client.aclose()
        await app.state.knowledge_client.aclose()

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics")
    async def metrics() -> PlainTextResponse:
        if not settings.observability.metrics_enabled:
            return PlainTextResponse("", status_code=404)
        return PlainTextResponse(REGISTRY.render_prometheus())

    app.include_router(agents_router)
    app.include_router(knowledge_router)
    return app

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from notifier.agent import Agent
from notifier.api.v1.router import api_router
from notifier.core.config import settings
from notifier.core.logging import configure_logging


def create_app(agent: Agent | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.agent.aclose()

    app = FastAPI(
        title=settings.app_name,
        default_response_class=ORJSONResponse,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.agent = agent or Agent()
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging()

app = create_app()

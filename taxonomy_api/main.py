from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from taxonomy_api.config import Settings
from taxonomy_api.context import AppContext
from taxonomy_api.log import configure_logging, get_logger
from taxonomy_api.routers import categories

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)
    context = AppContext.from_settings(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await context.database.create_all()
        logger.info("taxonomy_api_started", auth_configured=context.verifier is not None)
        yield
        await context.database.dispose()

    app = FastAPI(title="Taxonomy API", lifespan=lifespan)
    app.state.context = context
    app.include_router(categories.router)

    @app.get("/")
    def read_root() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()

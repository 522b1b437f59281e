from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import get_settings
from .core.logging_config import configure_logging
from .routes.actions import actions_router, executions_router
from .routes.agent import agent_router
from .routes.connections import connections_router
from .routes.health import health_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.store_backend == "mongo":
        from .db.mongo import ensure_indexes
        ensure_indexes()
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

    # Routers
    app.include_router(health_router, prefix="/api")
    app.include_router(actions_router, prefix="/api")
    app.include_router(executions_router, prefix="/api")
    app.include_router(connections_router, prefix="/api")
    app.include_router(agent_router, prefix="/api")

    return app


app = create_app()


@app.get("/")
async def root():
    return {"status": "ok", "message": "Action Dispatch Service is running"}

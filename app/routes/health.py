from fastapi import APIRouter

from ..services.actions import default_registry


health_router = APIRouter(tags=["health"])


@health_router.get("/healthz")
def healthcheck() -> dict:
    return {"status": "ok", "actions": len(default_registry().list())}

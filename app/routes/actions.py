"""Action API routes.

- GET  /actions: list the action catalog (optionally for one app)
- GET  /actions/{action}: one action with its parameter schema
- POST /actions/{action}/execute: execute an action for an entity
- GET  /executions: recent execution records
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import ActionNotFoundError, ActionTransportError
from ..core.security import require_api_key
from ..schemas.common import (
    ActionRequest,
    ActionResponse,
    ActionSummary,
    ExecuteActionBody,
    ExecutionRecord,
)
from ..services.execution_log import ExecutionLog
from ..services.executor import ActionExecutor
from .dependencies import get_execution_log, get_executor


logger = logging.getLogger(__name__)

actions_router = APIRouter(
    prefix="/actions",
    tags=["actions"],
    dependencies=[Depends(require_api_key)],
)

executions_router = APIRouter(
    prefix="/executions",
    tags=["actions"],
    dependencies=[Depends(require_api_key)],
)


@actions_router.get("", response_model=list[ActionSummary])
def list_actions(
    app: str | None = None,
    executor: ActionExecutor = Depends(get_executor),
) -> list[ActionSummary]:
    return [a.summary() for a in executor.registry.list(app=app)]


@actions_router.get("/{action}", response_model=ActionSummary)
def get_action(action: str, executor: ActionExecutor = Depends(get_executor)) -> ActionSummary:
    try:
        return executor.registry.get(action).summary()
    except ActionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@actions_router.post("/{action}/execute", response_model=ActionResponse)
def execute_action(
    action: str,
    body: ExecuteActionBody,
    executor: ActionExecutor = Depends(get_executor),
) -> ActionResponse:
    """Execute an action.

    Structured failures (unknown action, invalid params, no connection,
    provider errors) return 200 with ``successful: false``. Transport
    failures return 502.
    """
    request = ActionRequest(action=action, **body.model_dump())
    try:
        return executor.execute(request)
    except ActionTransportError as e:
        logger.error("Transport failure for %s: %s", action, e)
        raise HTTPException(status_code=502, detail=str(e))


@executions_router.get("", response_model=list[ExecutionRecord])
def list_executions(
    entity_id: str | None = None,
    action: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    execution_log: ExecutionLog = Depends(get_execution_log),
) -> list[ExecutionRecord]:
    return execution_log.recent(entity_id=entity_id, action=action, limit=limit)

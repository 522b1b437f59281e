"""Dependency factories for the routes.

Stores and the executor are process-wide singletons selected by
``settings.store_backend``. Tests replace them through
``app.dependency_overrides``.
"""

from functools import lru_cache

from ..core.config import get_settings
from ..services.connections import ConnectionStore, InMemoryConnectionStore, MongoConnectionStore
from ..services.execution_log import ExecutionLog, InMemoryExecutionLog, MongoExecutionLog
from ..services.executor import ActionExecutor


@lru_cache(maxsize=1)
def get_connection_store() -> ConnectionStore:
    if get_settings().store_backend == "memory":
        return InMemoryConnectionStore()
    return MongoConnectionStore()


@lru_cache(maxsize=1)
def get_execution_log() -> ExecutionLog:
    if get_settings().store_backend == "memory":
        return InMemoryExecutionLog()
    return MongoExecutionLog()


@lru_cache(maxsize=1)
def get_executor() -> ActionExecutor:
    return ActionExecutor(get_connection_store(), execution_log=get_execution_log())

"""Action executor - the single dispatch path for every caller.

HTTP routes, the Python client (through the API), tool-calling frameworks and
the agent graph all end up in ``ActionExecutor.execute``:

1. Resolve the entity (``"default"`` when omitted)
2. Look up the action in the registry
3. Validate params against the action's model
4. Resolve the connected account (skipped for no-auth apps)
5. Call the provider handler

Failures from steps 2-5 are returned as ``ActionResponse(successful=False)``.
Transport errors propagate as ``ActionTransportError``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
import logging

import httpx

from ..core.config import get_settings
from ..core.errors import ExecutionError
from ..schemas.common import ActionRequest, ActionResponse, ExecutionRecord
from .actions import ActionRegistry, default_registry
from .connections import ConnectionStore
from .credentials import CredentialResolver, resolve_entity_id
from .execution_log import ExecutionLog
from .providers import ProviderContext


class ActionExecutor:
    def __init__(
        self,
        store: ConnectionStore,
        *,
        registry: Optional[ActionRegistry] = None,
        http: Optional[httpx.Client] = None,
        base_urls: Optional[dict[str, str]] = None,
        execution_log: Optional[ExecutionLog] = None,
    ) -> None:
        settings = get_settings()
        self.registry = registry or default_registry()
        self.resolver = CredentialResolver(store)
        self.http = http or httpx.Client(timeout=settings.provider_timeout)
        self.base_urls = base_urls or settings.provider_base_urls()
        self.execution_log = execution_log
        self.logger = logging.getLogger(__name__)

    def execute(self, request: ActionRequest) -> ActionResponse:
        entity_id = resolve_entity_id(request.entity_id)
        app = ""
        account_id: Optional[str] = None

        try:
            action = self.registry.get(request.action)
            app = action.app
            params = action.parse_params(request.params)

            credentials: dict[str, Any] = {}
            if action.requires_auth:
                account = self.resolver.resolve(app, entity_id, request.connected_account_id)
                account_id = account.id
                credentials = account.credentials

            ctx = ProviderContext(
                action=action.name,
                app=app,
                http=self.http,
                base_url=self.base_urls.get(app, ""),
                credentials=credentials,
            )
            self.logger.info("Executing %s (entity=%s connection=%s)", action.name, entity_id, account_id)
            data = action.handler(ctx, params)
        except ExecutionError as e:
            self.logger.warning("Action %s failed: %s", request.action, e)
            response = ActionResponse.failure(str(e))
        else:
            response = ActionResponse.success(data)

        self._record(request.action, app, entity_id, account_id, response)
        return response

    def execute_action(
        self,
        action: str,
        params: Optional[dict[str, Any]] = None,
        entity_id: Optional[str] = None,
        connected_account_id: Optional[str] = None,
    ) -> ActionResponse:
        """Keyword form of ``execute`` for procedural callers."""
        return self.execute(
            ActionRequest(
                action=action,
                params=params or {},
                entity_id=entity_id,
                connected_account_id=connected_account_id,
            )
        )

    def _record(
        self,
        action: str,
        app: str,
        entity_id: str,
        account_id: Optional[str],
        response: ActionResponse,
    ) -> None:
        if self.execution_log is None:
            return
        try:
            self.execution_log.record(
                ExecutionRecord(
                    action=action.upper(),
                    app=app,
                    entity_id=entity_id,
                    connected_account_id=account_id,
                    successful=response.successful,
                    error=response.error,
                    timestamp=datetime.now(timezone.utc),
                )
            )
        except Exception as e:
            self.logger.error("Failed to record execution of %s: %s", action, e)

    def close(self) -> None:
        self.http.close()

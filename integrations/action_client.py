"""HTTP client for the action dispatch API.

    client = ActionClient()
    result = client.execute_action(
        "GITHUB_CREATE_AN_ISSUE",
        params={"owner": "composiohq", "repo": "agi", "title": "New Issue"},
    )
    if result.successful:
        print(result.data["html_url"])

Structured failures come back as ``ActionResponse(successful=False)``.
Transport and HTTP errors raise ``ActionClientError``.
"""

from typing import Any, Optional

import httpx

from app.core.config import get_settings
from app.schemas.common import ActionResponse, DEFAULT_ENTITY_ID


class ActionClientError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ActionClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        headers = {}
        api_key = api_key or settings.api_key
        if api_key:
            headers["X-API-Key"] = api_key
        self._http = httpx.Client(
            base_url=(base_url or settings.service_url).rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = self._http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise ActionClientError(f"{method} {path} failed: {e}") from e
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail")
            except (ValueError, AttributeError):
                detail = resp.text
            raise ActionClientError(f"{method} {path} returned {resp.status_code}: {detail}", resp.status_code)
        if resp.status_code == 204:
            return None
        return resp.json()

    def list_actions(self, app: str | None = None) -> list[dict[str, Any]]:
        params = {"app": app} if app else None
        return self._request("GET", "/actions", params=params)

    def get_action(self, action: str) -> dict[str, Any]:
        return self._request("GET", f"/actions/{action}")

    def execute_action(
        self,
        action: str,
        params: Optional[dict[str, Any]] = None,
        entity_id: Optional[str] = None,
        connected_account_id: Optional[str] = None,
    ) -> ActionResponse:
        body: dict[str, Any] = {"params": params or {}}
        if entity_id:
            body["entity_id"] = entity_id
        if connected_account_id:
            body["connected_account_id"] = connected_account_id
        data = self._request("POST", f"/actions/{action}/execute", json=body)
        return ActionResponse.model_validate(data)

    def create_connection(
        self,
        app: str,
        credentials: dict[str, Any],
        entity_id: str = DEFAULT_ENTITY_ID,
        auth_scheme: str = "OAUTH2",
    ) -> dict[str, Any]:
        payload = {"app": app, "credentials": credentials, "entity_id": entity_id, "auth_scheme": auth_scheme}
        return self._request("POST", "/connected_accounts", json=payload)

    def list_connections(self, entity_id: str | None = None, app: str | None = None) -> list[dict[str, Any]]:
        params = {k: v for k, v in {"entity_id": entity_id, "app": app}.items() if v}
        return self._request("GET", "/connected_accounts", params=params)

    def get_entity(self, id: str = DEFAULT_ENTITY_ID) -> "Entity":
        return Entity(self, id)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ActionClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class Entity:
    """Calls bound to one entity id."""

    def __init__(self, client: ActionClient, id: str) -> None:
        self.client = client
        self.id = id

    def execute_action(
        self,
        action: str,
        params: Optional[dict[str, Any]] = None,
        connected_account_id: Optional[str] = None,
    ) -> ActionResponse:
        return self.client.execute_action(action, params, entity_id=self.id, connected_account_id=connected_account_id)

    def get_connections(self, app: str | None = None) -> list[dict[str, Any]]:
        return self.client.list_connections(entity_id=self.id, app=app)

    def get_connection(self, app: str) -> dict[str, Any] | None:
        """Most recent active connection for ``app``, if any."""
        for conn in self.get_connections(app=app):
            if conn.get("status") == "ACTIVE":
                return conn
        return None

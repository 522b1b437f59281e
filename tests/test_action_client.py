import json

import httpx
import pytest

from integrations.action_client import ActionClient, ActionClientError


def _client(handler) -> ActionClient:
    return ActionClient(base_url="http://dispatch.test/api", api_key="k", transport=httpx.MockTransport(handler))


def test_execute_action_sends_contract_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["key"] = request.headers.get("X-API-Key")
        return httpx.Response(200, json={"successful": True, "data": {"html_url": "https://github.com/x/y/issues/1"}, "error": None})

    with _client(handler) as client:
        result = client.execute_action("GITHUB_CREATE_AN_ISSUE", {"owner": "x", "repo": "y", "title": "t"})

    assert result.successful is True
    assert result.data["html_url"].endswith("/issues/1")
    assert seen["path"] == "/api/actions/GITHUB_CREATE_AN_ISSUE/execute"
    assert seen["body"] == {"params": {"owner": "x", "repo": "y", "title": "t"}}
    assert seen["key"] == "k"


def test_entity_binds_entity_id():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            assert request.url.params["entity_id"] == "alice"
            return httpx.Response(200, json=[
                {"id": "ca_2", "status": "INACTIVE"},
                {"id": "ca_1", "status": "ACTIVE"},
            ])
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"successful": False, "data": None, "error": "No active connection"})

    client = _client(handler)
    entity = client.get_entity("alice")
    result = entity.execute_action("GMAIL_SEND_EMAIL", {"recipient_email": "a@b.c"}, connected_account_id="ca_1")

    assert result.successful is False
    assert bodies[0]["entity_id"] == "alice"
    assert bodies[0]["connected_account_id"] == "ca_1"
    assert entity.get_connection("gmail")["id"] == "ca_1"


def test_http_errors_raise():
    client = _client(lambda request: httpx.Response(502, json={"detail": "Transport failure"}))
    with pytest.raises(ActionClientError) as exc:
        client.execute_action("HACKERNEWS_GET_FRONTPAGE")
    assert exc.value.status_code == 502


def test_transport_errors_raise():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ActionClientError):
        _client(handler).list_actions()

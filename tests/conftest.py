"""Shared fixtures: in-memory stores and an executor whose provider calls hit a fake."""

import json

import httpx
import pytest

from app.services.connections import InMemoryConnectionStore
from app.services.execution_log import InMemoryExecutionLog
from app.services.executor import ActionExecutor


BASE_URLS = {
    "github": "https://api.github.test",
    "gmail": "https://gmail.test",
    "slack": "https://slack.test/api",
    "hackernews": "https://hn.test/api/v1",
}


def fake_provider(request: httpx.Request) -> httpx.Response:
    host, path, method = request.url.host, request.url.path, request.method

    if host == "api.github.test":
        if method == "POST" and path.endswith("/issues"):
            _, _, owner, repo, _ = path.split("/")
            if repo == "private":
                return httpx.Response(403, json={"message": "Resource not accessible by integration"})
            body = json.loads(request.content)
            return httpx.Response(201, json={
                "id": 1001,
                "number": 7,
                "html_url": f"https://github.com/{owner}/{repo}/issues/7",
                "title": body["title"],
                "state": "open",
            })
        if method == "PUT" and path.startswith("/user/starred/"):
            return httpx.Response(204)
        if method == "GET" and path == "/user":
            return httpx.Response(200, json={"login": "octocat", "id": 1, "name": "Octo", "html_url": "https://github.com/octocat"})

    if host == "gmail.test" and path == "/gmail/v1/users/me/messages/send":
        return httpx.Response(200, json={"id": "msg-1", "threadId": "thr-1", "labelIds": ["SENT"]})

    if host == "slack.test" and path == "/api/chat.postMessage":
        body = json.loads(request.content)
        if body["channel"] == "#missing":
            return httpx.Response(200, json={"ok": False, "error": "channel_not_found"})
        return httpx.Response(200, json={"ok": True, "channel": "C123", "ts": "1700000000.000100"})

    if host == "hn.test" and path == "/api/v1/search":
        hits = [
            {"title": f"Story {i}", "url": f"https://example.com/{i}", "points": 100 - i, "author": "pg", "objectID": str(i)}
            for i in range(int(request.url.params["hitsPerPage"]))
        ]
        return httpx.Response(200, json={"hits": hits})

    return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
def store() -> InMemoryConnectionStore:
    return InMemoryConnectionStore()


@pytest.fixture
def execution_log() -> InMemoryExecutionLog:
    return InMemoryExecutionLog()


@pytest.fixture
def provider_calls() -> list[httpx.Request]:
    return []


@pytest.fixture
def executor(store, execution_log, provider_calls) -> ActionExecutor:
    def handler(request: httpx.Request) -> httpx.Response:
        provider_calls.append(request)
        return fake_provider(request)

    http = httpx.Client(transport=httpx.MockTransport(handler))
    ex = ActionExecutor(store, http=http, base_urls=BASE_URLS, execution_log=execution_log)
    yield ex
    ex.close()

import httpx
import pytest

from app.core.errors import ActionTransportError
from app.schemas.common import ActionRequest
from app.services.connections import InMemoryConnectionStore
from app.services.executor import ActionExecutor


ISSUE_PARAMS = {"owner": "composiohq", "repo": "agi", "title": "New Issue", "body": "Created from a test"}


def test_create_issue_with_default_entity(executor, store, provider_calls):
    store.create("github", {"access_token": "tok-default"})

    result = executor.execute(ActionRequest(action="GITHUB_CREATE_AN_ISSUE", params=ISSUE_PARAMS))

    assert result.successful is True
    assert result.data["html_url"] == "https://github.com/composiohq/agi/issues/7"
    assert result.error is None
    assert provider_calls[0].headers["Authorization"] == "Bearer tok-default"


def test_explicit_connection_credentials_are_used(executor, store, provider_calls):
    chosen = store.create("github", {"access_token": "tok-chosen"})
    store.create("github", {"access_token": "tok-latest"})

    result = executor.execute_action("GITHUB_CREATE_AN_ISSUE", ISSUE_PARAMS, connected_account_id=chosen.id)

    assert result.successful is True
    assert provider_calls[-1].headers["Authorization"] == "Bearer tok-chosen"


def test_entity_connections_are_isolated(executor, store, provider_calls):
    store.create("github", {"access_token": "tok-alice"}, entity_id="alice")

    result = executor.execute_action("GITHUB_CREATE_AN_ISSUE", ISSUE_PARAMS)
    assert result.successful is False
    assert "default" in result.error
    assert provider_calls == []

    result = executor.execute_action("GITHUB_CREATE_AN_ISSUE", ISSUE_PARAMS, entity_id="alice")
    assert result.successful is True


def test_action_names_are_case_insensitive(executor, store):
    store.create("github", {"access_token": "t"})
    assert executor.execute_action("github_create_an_issue", ISSUE_PARAMS).successful is True


def test_unknown_action_is_a_structured_failure(executor):
    result = executor.execute_action("GITHUB_DELETE_EVERYTHING")
    assert result.successful is False
    assert "not found" in result.error


def test_missing_required_params_fail_before_any_call(executor, store, provider_calls):
    store.create("github", {"access_token": "t"})

    result = executor.execute_action("GITHUB_CREATE_AN_ISSUE", {"owner": "composiohq", "repo": "agi"})

    assert result.successful is False
    assert "title" in result.error
    assert provider_calls == []


def test_unknown_and_mistyped_params_are_invalid(executor, store):
    store.create("github", {"access_token": "t"})

    result = executor.execute_action("GITHUB_CREATE_AN_ISSUE", {**ISSUE_PARAMS, "priority": "high"})
    assert result.successful is False
    assert "priority" in result.error

    result = executor.execute_action("GITHUB_CREATE_AN_ISSUE", {**ISSUE_PARAMS, "labels": "bug"})
    assert result.successful is False
    assert "labels" in result.error


def test_provider_permission_error_is_reported(executor, store):
    store.create("github", {"access_token": "t"})

    result = executor.execute_action("GITHUB_CREATE_AN_ISSUE", {**ISSUE_PARAMS, "repo": "private"})

    assert result.successful is False
    assert "403" in result.error
    assert "missing permissions" in result.error


def test_connection_without_token_is_reported(executor, store):
    store.create("github", {})
    result = executor.execute_action("GITHUB_GET_THE_AUTHENTICATED_USER")
    assert result.successful is False
    assert "access token" in result.error


def test_no_auth_action_needs_no_connection(executor, provider_calls):
    result = executor.execute_action("HACKERNEWS_GET_FRONTPAGE", {"limit": 3})

    assert result.successful is True
    assert len(result.data["stories"]) == 3
    assert "Authorization" not in provider_calls[0].headers


def test_star_and_user_actions(executor, store):
    store.create("github", {"access_token": "t"})

    starred = executor.execute_action(
        "GITHUB_STAR_A_REPOSITORY_FOR_THE_AUTHENTICATED_USER", {"owner": "composiohq", "repo": "composio"}
    )
    assert starred.successful is True
    assert starred.data == {"starred": True, "repository": "composiohq/composio"}

    user = executor.execute_action("GITHUB_GET_THE_AUTHENTICATED_USER")
    assert user.data["login"] == "octocat"


def test_transport_failure_is_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store = InMemoryConnectionStore()
    store.create("github", {"access_token": "t"})
    http = httpx.Client(transport=httpx.MockTransport(handler))
    executor = ActionExecutor(store, http=http, base_urls={"github": "https://api.github.test"})

    with pytest.raises(ActionTransportError):
        executor.execute_action("GITHUB_CREATE_AN_ISSUE", ISSUE_PARAMS)


def test_executions_are_recorded(executor, store, execution_log):
    conn = store.create("github", {"access_token": "t"})
    executor.execute_action("GITHUB_CREATE_AN_ISSUE", ISSUE_PARAMS)
    executor.execute_action("SLACK_SEND_MESSAGE", {"channel": "#general", "text": "hi"}, entity_id="bob")

    records = execution_log.recent()
    assert [r.action for r in records] == ["SLACK_SEND_MESSAGE", "GITHUB_CREATE_AN_ISSUE"]
    assert records[0].successful is False and records[0].entity_id == "bob"
    assert records[1].successful is True and records[1].connected_account_id == conn.id
    assert execution_log.recent(entity_id="bob", limit=5) == [records[0]]


@pytest.mark.parametrize("owner,repo", [
    ("..", "../../orgs/acme/repos"),
    ("composiohq", ".."),
    ("composiohq", "agi/../../admin"),
    ("composio hq", "agi"),
])
def test_repository_names_cannot_escape_their_path(executor, store, provider_calls, owner, repo):
    store.create("github", {"access_token": "t"})

    starred = executor.execute_action(
        "GITHUB_STAR_A_REPOSITORY_FOR_THE_AUTHENTICATED_USER", {"owner": owner, "repo": repo}
    )
    issue = executor.execute_action("GITHUB_CREATE_AN_ISSUE", {**ISSUE_PARAMS, "owner": owner, "repo": repo})

    assert starred.successful is False
    assert issue.successful is False
    assert provider_calls == []


def test_dotted_repository_names_are_allowed(executor, store, provider_calls):
    store.create("github", {"access_token": "t"})

    result = executor.execute_action(
        "GITHUB_STAR_A_REPOSITORY_FOR_THE_AUTHENTICATED_USER", {"owner": "octo-org", "repo": "site.github.io"}
    )

    assert result.successful is True
    assert provider_calls[0].url.path == "/user/starred/octo-org/site.github.io"


class BrokenExecutionLog:
    def record(self, record):
        raise RuntimeError("mongo is down")

    def recent(self, *, entity_id=None, action=None, limit=50):
        return []


def test_execution_log_failure_does_not_change_the_response(executor, store):
    store.create("github", {"access_token": "t"})
    executor.execution_log = BrokenExecutionLog()

    ok = executor.execute_action("GITHUB_CREATE_AN_ISSUE", ISSUE_PARAMS)
    failed = executor.execute_action("SLACK_SEND_MESSAGE", {"channel": "#general", "text": "hi"})

    assert ok.successful is True
    assert ok.data["number"] == 7
    assert failed.successful is False
    assert "slack" in failed.error

import pytest

from app.schemas.common import ActionResponse
from tools.action_cli import build_parser, run


class FakeClient:
    def __init__(self):
        self.executed = []

    def list_actions(self, app=None):
        return [{"name": "GITHUB_CREATE_AN_ISSUE", "description": "Create an issue"}]

    def execute_action(self, action, params=None, entity_id=None, connected_account_id=None):
        self.executed.append((action, params, entity_id, connected_account_id))
        if action == "SLACK_SEND_MESSAGE":
            return ActionResponse.failure("No active connection")
        return ActionResponse.success({"html_url": "https://github.com/x/y/issues/1"})


def test_execute_parses_params_and_exit_code(capsys):
    client = FakeClient()
    args = build_parser().parse_args(
        ["execute", "GITHUB_CREATE_AN_ISSUE", "--params", '{"title": "t"}', "--entity-id", "alice"]
    )

    assert run(args, client) == 0
    assert client.executed == [("GITHUB_CREATE_AN_ISSUE", {"title": "t"}, "alice", None)]
    assert "html_url" in capsys.readouterr().out

    failed = build_parser().parse_args(["execute", "SLACK_SEND_MESSAGE"])
    assert run(failed, client) == 1


def test_list_prints_actions(capsys):
    args = build_parser().parse_args(["list"])
    assert run(args, FakeClient()) == 0
    assert "GITHUB_CREATE_AN_ISSUE" in capsys.readouterr().out


def test_params_must_be_a_json_object():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["execute", "X_Y", "--params", "[1]"])

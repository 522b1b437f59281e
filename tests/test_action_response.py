import pytest
from pydantic import ValidationError

from app.schemas.common import ActionRequest, ActionResponse


def test_success_always_carries_data():
    resp = ActionResponse.success()
    assert resp.successful is True
    assert resp.data == {}
    assert resp.error is None


def test_failure_always_carries_error():
    resp = ActionResponse.failure("")
    assert resp.successful is False
    assert resp.error == "Unknown error"


def test_invalid_outcomes_are_rejected():
    with pytest.raises(ValidationError):
        ActionResponse(successful=True)
    with pytest.raises(ValidationError):
        ActionResponse(successful=False, data={"x": 1})


def test_request_defaults():
    req = ActionRequest(action="GITHUB_CREATE_AN_ISSUE")
    assert req.params == {}
    assert req.entity_id is None
    assert req.connected_account_id is None

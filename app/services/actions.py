"""Action catalog.

An action names one remote operation of a connected application, namespaced
as ``<APP>_<OPERATION>`` (e.g. ``GITHUB_CREATE_AN_ISSUE``). Each definition
carries the pydantic model its params are validated against and the provider
handler that performs the call.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable
import logging

from pydantic import BaseModel, ValidationError

from ..core.errors import ActionNotFoundError, InvalidParamsError
from ..schemas.common import ActionSummary
from . import providers
from .providers import ProviderContext


Handler = Callable[[ProviderContext, Any], dict[str, Any]]


@dataclass(frozen=True)
class ActionDefinition:
    name: str
    app: str
    description: str
    params_model: type[BaseModel]
    handler: Handler
    requires_auth: bool = True

    def parameters_schema(self) -> dict[str, Any]:
        schema = self.params_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def parse_params(self, params: dict[str, Any] | None) -> BaseModel:
        """Validate raw params against the action's model.

        Raises:
            InvalidParamsError: missing required fields, wrong types or unknown keys
        """
        try:
            return self.params_model.model_validate(params or {})
        except ValidationError as e:
            raise InvalidParamsError(self.name, [_describe_error(err) for err in e.errors()]) from e

    def summary(self) -> ActionSummary:
        return ActionSummary(
            name=self.name,
            app=self.app,
            description=self.description,
            parameters=self.parameters_schema(),
            requires_auth=self.requires_auth,
        )


def _describe_error(err: dict[str, Any]) -> str:
    loc = ".".join(str(part) for part in err.get("loc") or ()) or "params"
    return f"{loc}: {err.get('msg', 'invalid value')}"


class ActionRegistry:
    def __init__(self) -> None:
        self._actions: dict[str, ActionDefinition] = {}

    def register(self, action: ActionDefinition) -> None:
        name = action.name.upper()
        if not name.startswith(action.app.upper() + "_"):
            raise ValueError(f"Action {action.name} is not namespaced by its app '{action.app}'")
        if name in self._actions:
            raise ValueError(f"Action {action.name} is already registered")
        self._actions[name] = action
        logging.getLogger(__name__).debug("Registered action %s", name)

    def get(self, name: str) -> ActionDefinition:
        action = self._actions.get((name or "").strip().upper())
        if action is None:
            raise ActionNotFoundError(name)
        return action

    def list(self, app: str | None = None) -> list[ActionDefinition]:
        actions = sorted(self._actions.values(), key=lambda a: a.name)
        if app:
            actions = [a for a in actions if a.app == app.lower()]
        return actions

    def apps(self) -> list[str]:
        return sorted({a.app for a in self._actions.values()})

    def __contains__(self, name: str) -> bool:
        return (name or "").strip().upper() in self._actions


BUILTIN_ACTIONS = [
    ActionDefinition(
        name="GITHUB_CREATE_AN_ISSUE",
        app="github",
        description="Create an issue in a GitHub repository.",
        params_model=providers.GithubCreateIssueParams,
        handler=providers.github_create_an_issue,
    ),
    ActionDefinition(
        name="GITHUB_STAR_A_REPOSITORY_FOR_THE_AUTHENTICATED_USER",
        app="github",
        description="Star a repository for the authenticated user.",
        params_model=providers.GithubRepositoryParams,
        handler=providers.github_star_repository,
    ),
    ActionDefinition(
        name="GITHUB_GET_THE_AUTHENTICATED_USER",
        app="github",
        description="Get the profile of the authenticated GitHub user.",
        params_model=providers.NoParams,
        handler=providers.github_get_authenticated_user,
    ),
    ActionDefinition(
        name="GMAIL_SEND_EMAIL",
        app="gmail",
        description="Send an email from the connected Gmail account.",
        params_model=providers.GmailSendEmailParams,
        handler=providers.gmail_send_email,
    ),
    ActionDefinition(
        name="SLACK_SEND_MESSAGE",
        app="slack",
        description="Post a message to a Slack channel.",
        params_model=providers.SlackSendMessageParams,
        handler=providers.slack_send_message,
    ),
    ActionDefinition(
        name="HACKERNEWS_GET_FRONTPAGE",
        app="hackernews",
        description="List the stories currently on the Hacker News front page.",
        params_model=providers.HackernewsFrontpageParams,
        handler=providers.hackernews_get_frontpage,
        requires_auth=False,
    ),
]


def build_registry(actions: list[ActionDefinition] | None = None) -> ActionRegistry:
    registry = ActionRegistry()
    for action in BUILTIN_ACTIONS if actions is None else actions:
        registry.register(action)
    return registry


@lru_cache(maxsize=1)
def default_registry() -> ActionRegistry:
    return build_registry()

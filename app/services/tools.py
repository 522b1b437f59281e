"""Framework-facing tool wrappers around actions.

A tool exposes one action's name, description and parameter schema to an LLM
tool-calling loop, together with an execute callback bound to an entity (and
optionally a specific connected account).
"""

from __future__ import annotations

from typing import Any, Iterable, Optional
import json
import logging

from langchain_core.tools import StructuredTool

from ..schemas.common import ActionResponse, DEFAULT_ENTITY_ID
from .actions import ActionDefinition
from .executor import ActionExecutor


logger = logging.getLogger(__name__)


class ActionTool:
    def __init__(
        self,
        definition: ActionDefinition,
        executor: ActionExecutor,
        entity_id: str = DEFAULT_ENTITY_ID,
        connected_account_id: Optional[str] = None,
    ) -> None:
        self.definition = definition
        self.executor = executor
        self.entity_id = entity_id
        self.connected_account_id = connected_account_id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def parameters(self) -> dict[str, Any]:
        return self.definition.parameters_schema()

    def execute(self, **params: Any) -> dict[str, Any]:
        response = self.executor.execute_action(
            self.name,
            params=params,
            entity_id=self.entity_id,
            connected_account_id=self.connected_account_id,
        )
        return response.model_dump()

    def to_openai(self) -> dict[str, Any]:
        """OpenAI chat-completions function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_langchain(self) -> StructuredTool:
        def _run(**kwargs: Any) -> dict[str, Any]:
            # The args schema fills defaults for omitted fields; drop unset Nones
            return self.execute(**{k: v for k, v in kwargs.items() if v is not None})

        return StructuredTool.from_function(
            func=_run,
            name=self.name,
            description=self.description,
            args_schema=self.definition.params_model,
        )


class ActionToolset:
    """Builds tools for an entity and dispatches the calls a model makes."""

    def __init__(
        self,
        executor: ActionExecutor,
        entity_id: str = DEFAULT_ENTITY_ID,
        connected_account_id: Optional[str] = None,
    ) -> None:
        self.executor = executor
        self.entity_id = entity_id
        self.connected_account_id = connected_account_id

    def get_tools(
        self,
        actions: Optional[Iterable[str]] = None,
        apps: Optional[Iterable[str]] = None,
    ) -> list[ActionTool]:
        registry = self.executor.registry
        selected: dict[str, ActionDefinition] = {}
        for name in actions or []:
            definition = registry.get(name)
            selected[definition.name] = definition
        for app in apps or []:
            for definition in registry.list(app=app):
                selected[definition.name] = definition
        if not actions and not apps:
            selected = {d.name: d for d in registry.list()}

        return [
            ActionTool(d, self.executor, self.entity_id, self.connected_account_id)
            for d in sorted(selected.values(), key=lambda d: d.name)
        ]

    def execute_tool_call(self, name: str, arguments: str | dict[str, Any] | None) -> dict[str, Any]:
        """Run one tool call. ``arguments`` may be the raw JSON text a model emitted."""
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError as e:
                return ActionResponse.failure(f"Malformed arguments for {name}: {e}").model_dump()
        if arguments is not None and not isinstance(arguments, dict):
            return ActionResponse.failure(f"Arguments for {name} must be an object").model_dump()

        response = self.executor.execute_action(
            name,
            params=arguments or {},
            entity_id=self.entity_id,
            connected_account_id=self.connected_account_id,
        )
        return response.model_dump()

    def handle_tool_calls(self, tool_calls: Iterable[Any]) -> list[dict[str, Any]]:
        """Execute OpenAI-style tool calls and build the ``tool`` messages to send back."""
        messages = []
        for call in tool_calls or []:
            result = self.execute_tool_call(call.function.name, call.function.arguments)
            logger.info("Tool call %s -> successful=%s", call.function.name, result.get("successful"))
            messages.append({
                "role": "tool",
                "tool_call_id": call.id,
                "content": json.dumps(result, default=str),
            })
        return messages

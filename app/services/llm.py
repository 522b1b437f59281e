import logging

from openai import OpenAI

from ..core.config import get_settings
from .tools import ActionTool, ActionToolset


SYSTEM_PROMPT = (
    "You operate the user's connected applications through function tools. "
    "Use them when needed, then summarise what happened in one or two sentences."
)


class LLMService:
    """Direct chat-completions tool loop, without an orchestration framework."""

    def __init__(self, client: OpenAI | None = None, model: str | None = None) -> None:
        settings = get_settings()
        if client is None and settings.openai_api_key:
            client = OpenAI(api_key=settings.openai_api_key)
        self.client = client
        self.model = model or settings.openai_model
        self.logger = logging.getLogger(__name__)

    def run_with_tools(
        self,
        prompt: str,
        toolset: ActionToolset,
        tools: list[ActionTool],
        max_turns: int = 5,
    ) -> tuple[str, list[dict]]:
        """Let the model call tools until it answers in plain text.

        Returns:
            (final reply, tool messages that were sent back to the model)
        """
        if not self.client:
            raise RuntimeError("OPENAI_API_KEY is not configured")

        messages: list[dict] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        tool_specs = [t.to_openai() for t in tools]
        tool_messages: list[dict] = []

        for turn in range(max_turns):
            kwargs = {"tools": tool_specs} if tool_specs else {}
            resp = self.client.chat.completions.create(model=self.model, messages=messages, **kwargs)
            message = resp.choices[0].message
            if not message.tool_calls:
                return message.content or "", tool_messages

            messages.append(message.model_dump(exclude_none=True))
            results = toolset.handle_tool_calls(message.tool_calls)
            messages.extend(results)
            tool_messages.extend(results)
            self.logger.debug("Turn %d executed %d tool calls", turn + 1, len(results))

        self.logger.warning("Tool loop stopped after %d turns", max_turns)
        last = tool_messages[-1]["content"] if tool_messages else ""
        return f"Stopped after {max_turns} tool turns. Last result: {last}", tool_messages

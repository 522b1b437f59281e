"""Agent Graph - LLM tool-calling loop over actions.

This module implements a two-node graph:
1. Agent: the chat model, bound to the selected action tools, decides what to call
2. Tools: every tool call in the model's last message is executed through the toolset

The graph loops agent -> tools -> agent until the model answers without tool calls.
"""

from __future__ import annotations

from typing import Annotated, Any, TypedDict
import json
import logging
import operator

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import ChatOpenAI
from langgraph.graph import END, StateGraph
from langgraph.errors import GraphRecursionError
from langgraph.graph.message import add_messages

from ..core.config import get_settings
from .tools import ActionTool, ActionToolset


SYSTEM_PROMPT = (
    "You can act on the user's connected applications through the provided tools. "
    "Call a tool when it is needed to complete the request, then report the outcome briefly. "
    "If a tool result has successful=false, explain the error instead of retrying blindly."
)


class GraphState(TypedDict, total=False):
    """State passed through the agent graph nodes.

    Attributes:
        messages: Conversation so far, including tool messages
        tool_results: One entry per executed tool call
    """
    messages: Annotated[list[BaseMessage], add_messages]
    tool_results: Annotated[list[dict[str, Any]], operator.add]


class AgentGraph:
    def __init__(self, toolset: ActionToolset, tools: list[ActionTool], llm: Any = None) -> None:
        self.logger = logging.getLogger(__name__)
        self.toolset = toolset
        self.tools = tools

        if llm is None:
            settings = get_settings()
            if not settings.openai_api_key:
                raise RuntimeError("OPENAI_API_KEY is not configured")
            llm = ChatOpenAI(
                model=settings.openai_model,
                api_key=settings.openai_api_key,
                max_retries=1,
                timeout=50,
            )
        self.llm = llm.bind_tools([t.to_langchain() for t in tools]) if tools else llm

        graph = StateGraph(GraphState)
        graph.add_node("agent", self._agent)
        graph.add_node("tools", self._tools)

        graph.add_edge("__start__", "agent")
        graph.add_conditional_edges("agent", self._route, {"tools": "tools", END: END})
        graph.add_edge("tools", "agent")

        self.app = graph.compile()

    # ========================================
    # Graph Node Methods
    # ========================================

    def _agent(self, state: GraphState) -> dict[str, Any]:
        resp = self.llm.invoke(state["messages"])
        return {"messages": [resp]}

    def _tools(self, state: GraphState) -> dict[str, Any]:
        last = state["messages"][-1]
        messages = []
        results = []
        for call in getattr(last, "tool_calls", None) or []:
            result = self.toolset.execute_tool_call(call["name"], call.get("args") or {})
            self.logger.info("Agent tool call %s -> successful=%s", call["name"], result.get("successful"))
            results.append({"tool": call["name"], "args": call.get("args") or {}, "result": result})
            messages.append(ToolMessage(content=json.dumps(result, default=str), tool_call_id=call["id"]))
        return {"messages": messages, "tool_results": results}

    @staticmethod
    def _route(state: GraphState) -> str:
        last = state["messages"][-1]
        if isinstance(last, AIMessage) and last.tool_calls:
            return "tools"
        return END

    # ========================================
    # Main Entry Point
    # ========================================

    def run(self, prompt: str, max_steps: int = 8) -> dict[str, Any]:
        """Run the loop for one user prompt.

        Args:
            prompt: The user's request
            max_steps: Upper bound on agent/tool round trips

        Returns:
            {"reply": final model text, "tool_results": [...]}

        When the model is still calling tools after ``max_steps`` round trips
        the run stops and the reply says so; the tool results gathered so far
        are kept.
        """
        inputs: GraphState = {
            "messages": [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=prompt)],
            "tool_results": [],
        }
        state: dict[str, Any] = dict(inputs)
        try:
            for state in self.app.stream(inputs, {"recursion_limit": max_steps * 2 + 1}, stream_mode="values"):
                pass
        except GraphRecursionError:
            results = state.get("tool_results") or []
            self.logger.warning("Agent stopped after %d steps with %d tool calls", max_steps, len(results))
            last = json.dumps(results[-1]["result"], default=str) if results else ""
            return {"reply": f"Stopped after {max_steps} steps. Last result: {last}", "tool_results": results}

        final = state["messages"][-1]
        reply = final.content if isinstance(final.content, str) else json.dumps(final.content)
        return {"reply": reply, "tool_results": state.get("tool_results") or []}

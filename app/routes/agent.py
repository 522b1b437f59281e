"""Agent API routes.

- /agent/run: let an LLM complete a request by calling actions as tools

The loop runs either through the langgraph agent graph or a plain
chat-completions tool loop, chosen by ``settings.agent_mode``.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import get_settings
from ..core.errors import ActionNotFoundError, ActionTransportError
from ..core.security import require_api_key
from ..schemas.common import AgentRunRequest, AgentRunResult
from ..services.agent_graph import AgentGraph
from ..services.executor import ActionExecutor
from ..services.llm import LLMService
from ..services.tools import ActionToolset
from .dependencies import get_executor


logger = logging.getLogger(__name__)

agent_router = APIRouter(
    prefix="/agent",
    tags=["agent"],
    dependencies=[Depends(require_api_key)],
)


@agent_router.post("/run", response_model=AgentRunResult)
def run_agent(payload: AgentRunRequest, executor: ActionExecutor = Depends(get_executor)) -> AgentRunResult:
    settings = get_settings()
    if not settings.openai_api_key:
        raise HTTPException(status_code=503, detail="LLM is not configured")

    toolset = ActionToolset(executor, payload.entity_id, payload.connected_account_id)
    try:
        tools = toolset.get_tools(actions=payload.actions, apps=payload.apps)
    except ActionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        if settings.agent_mode == "completions":
            reply, tool_messages = LLMService().run_with_tools(
                payload.prompt, toolset, tools, max_turns=payload.max_steps
            )
            results = [json.loads(m["content"]) for m in tool_messages]
        else:
            output = AgentGraph(toolset, tools).run(payload.prompt, max_steps=payload.max_steps)
            reply, results = output["reply"], output["tool_results"]
    except ActionTransportError as e:
        logger.error("Agent run aborted: %s", e)
        raise HTTPException(status_code=502, detail=str(e))

    logger.info(
        "Agent run: entity=%s tools=%d calls=%d reply_len=%d",
        payload.entity_id,
        len(tools),
        len(results),
        len(reply),
    )
    return AgentRunResult(reply=reply, tool_results=results)

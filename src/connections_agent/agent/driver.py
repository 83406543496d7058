"""Model/tool conversation loop."""

from __future__ import annotations

import logging

from connections_agent.agent.dispatcher import ToolObserver, execute_tool_calls
from connections_agent.agent.endpoint import ChatCompletionEndpoint, ToolChoice
from connections_agent.agent.materializer import ToolCallMaterializer
from connections_agent.agent.registry import ToolContext, ToolRegistry
from connections_agent.agent.surface import ResponseSurface
from connections_agent.config import AgentConfig
from connections_agent.types import AssistantMessage, Message

logger = logging.getLogger(__name__)


class ConversationDriver:
    """Runs one conversation turn, alternating model completions and tool calls.

    Each iteration streams a completion into the response surface while tool
    call fragments are collected. Valid tool calls are dispatched and their
    results appended to the transcript for the next iteration. The last
    allowed iteration forces tool choice to "none", so a turn always ends
    with at most `max_tool_call_iterations` completion requests.
    """

    def __init__(
        self,
        *,
        endpoint: ChatCompletionEndpoint,
        tool_registry: ToolRegistry,
        config: AgentConfig | None = None,
        observer: ToolObserver | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.tool_registry = tool_registry
        self.config = config or AgentConfig()
        self.observer = observer

    async def run(
        self,
        transcript: list[Message],
        surface: ResponseSurface,
        *,
        is_admin: bool = False,
        context: ToolContext | None = None,
        max_iterations: int | None = None,
    ) -> str | None:
        """Drive the loop and return the id of the last finalized message.

        `transcript` is extended in place. Errors raised by the endpoint stream
        propagate unchanged; tool failures are reported to the model instead.
        """

        budget = self.config.max_tool_call_iterations if max_iterations is None else max_iterations
        if budget < 1:
            raise ValueError(f"max_iterations must be at least 1, got {budget}")

        context = context or ToolContext(requester_is_admin=is_admin)
        tools = self.tool_registry.tool_definitions(is_admin=is_admin)
        implementations = self.tool_registry.implementations(context, is_admin=is_admin)

        remaining = budget
        finalized_message_id: str | None = None

        while remaining > 0:
            remaining -= 1
            tool_choice: ToolChoice = "none" if remaining == 0 else "auto"
            logger.debug(
                "Tool call / response loop iteration: remaining=%d transcript_length=%d",
                remaining,
                len(transcript),
            )

            await surface.open_placeholder()
            materializer = ToolCallMaterializer()
            async for chunk in self.endpoint.stream(transcript, tools, tool_choice):
                if chunk.text:
                    await surface.append(chunk.text)
                for fragment in chunk.tool_call_fragments:
                    materializer.add(fragment)

            finalized = await surface.finalize()
            if finalized.text:
                transcript.append(AssistantMessage(content=finalized.text))
                finalized_message_id = finalized.message_id

            tool_calls = materializer.valid_tool_calls()
            if not tool_calls:
                logger.info("Model finished without tool calls after %d iteration(s)", budget - remaining)
                return finalized_message_id

            logger.debug("Handling %d tool call(s): %s", len(tool_calls), [call.name for call in tool_calls])
            if self.config.announce_tool_use:
                descriptions = ", ".join(self.tool_registry.describe_call(call) for call in tool_calls)
                await surface.announce_tools(descriptions)

            transcript.extend(
                await execute_tool_calls(tool_calls, implementations, observer=self.observer)
            )

        logger.warning(
            "Reached max tool call iterations (%d); last finalized message: %s",
            budget,
            finalized_message_id,
        )
        return finalized_message_id

"""System prompt and initial transcript construction."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from connections_agent.types import Message, SystemMessage, UserMessage

SYSTEM_PROMPT = """
You are an assistant for a community of members working on climate solutions.
Members will ask you to connect them with other members. Respond professionally
and go into depth on the members you suggest.

When a member asks a question:
1) Work out what information they need from the question and prior conversation.
2) Use the search tools to find relevant messages, profiles and member records.
   Prefer several specific searches over one multi-topic search, and follow up
   with further searches when the first results are insufficient.
3) Ground every factual statement in tool results. Never invent details about members.
4) If a tool returns an error, correct the call or explain what could not be found.

Tool results are returned as tag markup. Member results include each member's
home location and whether they are checked in today.
""".strip()


def build_initial_transcript(
    question: str,
    *,
    requester: dict[str, Any],
    history: Iterable[Message] = (),
    now: datetime | None = None,
) -> list[Message]:
    """Build the transcript the conversation driver starts a turn with."""

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    transcript: list[Message] = [
        SystemMessage(content=SYSTEM_PROMPT),
        SystemMessage(content=f"The current date and time is {timestamp}."),
    ]
    transcript.extend(history)
    transcript.append(
        SystemMessage(
            content=(
                "The current task is to respond to the most recent user message, in the "
                "context of the preceding conversation. Details of the user who left the "
                f"last message: {json.dumps(requester, default=str)}. Their most recent "
                "message follows."
            )
        )
    )
    transcript.append(UserMessage(content=question))
    return transcript

import json
from datetime import datetime, timezone

from connections_agent.agent.prompts import SYSTEM_PROMPT, build_initial_transcript
from connections_agent.types import AssistantMessage, SystemMessage, UserMessage


def test_system_prompt_requires_grounded_answers() -> None:
    assert "Ground every factual statement in tool results" in SYSTEM_PROMPT
    assert "tag markup" in SYSTEM_PROMPT


def test_initial_transcript_layout() -> None:
    now = datetime(2024, 8, 1, 9, 30, tzinfo=timezone.utc)
    history = [UserMessage(content="hi"), AssistantMessage(content="hello")]
    requester = {"name": "Jo", "slack_id": "U009"}

    transcript = build_initial_transcript("Who works on solar?", requester=requester, history=history, now=now)

    assert transcript[0] == SystemMessage(content=SYSTEM_PROMPT)
    assert transcript[1] == SystemMessage(content="The current date and time is 2024-08-01T09:30:00+00:00.")
    assert transcript[2:4] == history
    assert isinstance(transcript[4], SystemMessage)
    assert json.dumps(requester) in transcript[4].content
    assert transcript[-1] == UserMessage(content="Who works on solar?")

from types import SimpleNamespace

import pytest
from langchain_core import messages as lc_messages

from connections_agent.agent.endpoint import to_langchain_messages, to_stream_chunk
from connections_agent.types import (
    AssistantMessage,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
)


def test_transcript_converts_to_langchain_messages() -> None:
    transcript = [
        SystemMessage(content="be helpful"),
        UserMessage(content="who works on solar?"),
        AssistantMessage(
            tool_calls=[
                ToolCall(id="call_1", name="searchMembers", arguments_text='{"queries": ["solar"]}'),
                ToolCall(id="call_2", name="searchDocuments", arguments_text="{bad"),
            ]
        ),
        ToolMessage(tool_call_id="call_1", content="<members/>\n"),
    ]

    converted = to_langchain_messages(transcript)

    assert [type(message) for message in converted] == [
        lc_messages.SystemMessage,
        lc_messages.HumanMessage,
        lc_messages.AIMessage,
        lc_messages.ToolMessage,
    ]
    assistant = converted[2]
    assert assistant.tool_calls[0]["name"] == "searchMembers"
    assert assistant.tool_calls[0]["args"] == {"queries": ["solar"]}
    assert assistant.invalid_tool_calls[0]["id"] == "call_2"
    assert assistant.invalid_tool_calls[0]["args"] == "{bad"
    assert converted[3].tool_call_id == "call_1"


def test_unknown_messages_are_rejected() -> None:
    with pytest.raises(TypeError):
        to_langchain_messages(["not a message"])  # type: ignore[list-item]


def test_stream_chunk_carries_text_and_fragments() -> None:
    chunk = SimpleNamespace(
        content="Looking",
        tool_call_chunks=[{"index": 0, "id": "call_1", "name": "searchDocuments", "args": '{"que'}],
    )

    converted = to_stream_chunk(chunk)

    assert converted.text == "Looking"
    [fragment] = converted.tool_call_fragments
    assert (fragment.index, fragment.id, fragment.name, fragment.arguments) == (
        0,
        "call_1",
        "searchDocuments",
        '{"que',
    )


def test_stream_chunk_with_content_blocks() -> None:
    chunk = SimpleNamespace(content=[{"type": "text", "text": "a"}, {"type": "image"}, "b"])

    converted = to_stream_chunk(chunk)

    assert converted.text == "ab"
    assert converted.tool_call_fragments == []


def test_empty_chunk_has_no_text() -> None:
    assert to_stream_chunk(lc_messages.AIMessageChunk(content="")).text is None

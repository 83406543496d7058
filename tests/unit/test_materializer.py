from connections_agent.agent.materializer import ToolCallMaterializer, ToolCallRecord
from connections_agent.types import ToolCall, ToolCallFragment


def test_fragments_accumulate_by_index() -> None:
    materializer = ToolCallMaterializer()
    materializer.add(ToolCallFragment(index=0, id="call_1", name="searchMembers", arguments='{"que'))
    materializer.add(ToolCallFragment(index=1, id="call_2", name="searchDocuments", arguments=""))
    materializer.add(ToolCallFragment(index=0, arguments='ries": ["CTO"]}'))
    materializer.add(ToolCallFragment(index=1, arguments='{"query": "solar"}'))

    assert materializer.valid_tool_calls() == [
        ToolCall(id="call_1", name="searchMembers", arguments_text='{"queries": ["CTO"]}'),
        ToolCall(id="call_2", name="searchDocuments", arguments_text='{"query": "solar"}'),
    ]


def test_later_name_fragment_overwrites_only_when_present() -> None:
    record = ToolCallRecord("call_1", "search")
    record.append_name("")
    record.append_name(None)

    assert record.finalize() == ToolCall(id="call_1", name="search", arguments_text="")

    record.append_name("searchDocuments")
    assert record.finalize().name == "searchDocuments"


def test_records_without_id_or_name_are_dropped() -> None:
    materializer = ToolCallMaterializer()
    materializer.add(ToolCallFragment(index=0, name="searchDocuments", arguments="{}"))
    materializer.add(ToolCallFragment(index=1, id="call_2", arguments="{}"))
    materializer.add(ToolCallFragment(index=2, id="call_3", name="searchMembers", arguments="{not json"))

    calls = materializer.valid_tool_calls()

    assert len(materializer) == 3
    assert calls == [ToolCall(id="call_3", name="searchMembers", arguments_text="{not json")]


def test_fragments_without_index_are_ignored() -> None:
    materializer = ToolCallMaterializer()
    materializer.add(ToolCallFragment(index=None, id="call_1", name="searchDocuments"))

    assert materializer.valid_tool_calls() == []


def test_calls_are_ordered_by_stream_index() -> None:
    materializer = ToolCallMaterializer()
    materializer.add(ToolCallFragment(index=3, id="late", name="b"))
    materializer.add(ToolCallFragment(index=0, id="early", name="a"))

    assert [call.id for call in materializer.valid_tool_calls()] == ["early", "late"]


def test_id_comes_only_from_the_first_fragment_at_an_index() -> None:
    materializer = ToolCallMaterializer()
    materializer.add(ToolCallFragment(index=0, id="call_1", name="searchDocuments", arguments="{"))
    materializer.add(ToolCallFragment(index=0, id="call_other", arguments="}"))
    materializer.add(ToolCallFragment(index=1, name="searchUsers", arguments="{}"))
    materializer.add(ToolCallFragment(index=1, id="call_late", arguments=""))

    assert materializer.valid_tool_calls() == [
        ToolCall(id="call_1", name="searchDocuments", arguments_text="{}"),
    ]

import pytest
from pydantic import BaseModel

from connections_agent.agent.markup import object_to_xml
from connections_agent.types import FusedResult


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ({"root": None}, "<root/>\n"),
        (None, ""),
        ({"root": 42}, "<root>42</root>\n"),
        (
            {"root": {"name": "test", "value": 123}},
            "<root>\n  <name>test</name>\n  <value>123</value>\n</root>\n",
        ),
        (
            {"root": {"outer": {"inner": "value", "number": 42}}},
            "<root>\n  <outer>\n    <inner>value</inner>\n    <number>42</number>\n  </outer>\n</root>\n",
        ),
        (
            {"root": {"items": ["a", "b", "c"]}},
            "<root>\n  <items>a</items>\n  <items>b</items>\n  <items>c</items>\n</root>\n",
        ),
        ({"flag": True, "other": False}, "<flag>true</flag>\n<other>false</other>\n"),
        ("plain text", "plain text"),
    ],
)
def test_object_to_xml(value: object, expected: str) -> None:
    assert object_to_xml(value) == expected


def test_error_payload_renders_as_sibling_elements() -> None:
    rendered = object_to_xml({"error": "Failed to parse arguments JSON", "args": '{"a": 1,}'})

    assert rendered == (
        "<error>Failed to parse arguments JSON</error>\n"
        '<args>{"a": 1,}</args>\n'
    )


def test_text_is_escaped() -> None:
    assert object_to_xml({"content": "<@U123> & friends"}) == "<content>&lt;@U123&gt; &amp; friends</content>\n"


def test_models_and_dataclasses_are_flattened() -> None:
    class Result(BaseModel):
        url: str

    assert object_to_xml({"result": Result(url="https://x")}) == "<result>\n  <url>https://x</url>\n</result>\n"

    fused = FusedResult(identity="doc1", content="c", combined_score=0.5, per_query_score={"q": 0.5})
    assert "<per_query_score>\n    <query>q</query>" in object_to_xml({"doc": fused})

import json

from fastapi.testclient import TestClient

from connections_agent.api.main import create_app
from connections_agent.config import Settings
from connections_agent.types import StreamChunk, ToolCallFragment

DOCUMENTS = [
    {
        "identity": "slack-1",
        "content": "Angel investor backing solar startups",
        "source_type": "slack_message",
        "entity_id": "U001",
        "entity_attributes": {"name": "Ada Park", "location": "Seattle"},
    },
    {
        "identity": "slack-2",
        "content": "Installing residential solar panels",
        "source_type": "slack_message",
        "entity_id": "U002",
        "entity_attributes": {"name": "Ben Ortiz", "location": "San Francisco", "is_checked_in_today": True},
    },
]


class _ScriptedEndpoint:
    def __init__(self, responses: list[list[StreamChunk]]) -> None:
        self.responses = list(responses)

    async def stream(self, transcript, tools, tool_choice):
        for chunk in self.responses.pop(0):
            yield chunk


def _settings() -> Settings:
    return Settings(_env_file=None, openrouter_api_key="", chat_edit_interval_ms=0)


def test_api_documents_query_and_search() -> None:
    endpoint = _ScriptedEndpoint(
        [
            [
                StreamChunk(
                    tool_call_fragments=[
                        ToolCallFragment(
                            index=0,
                            id="call_1",
                            name="searchDocuments",
                            arguments=json.dumps({"query": "solar"}),
                        )
                    ]
                )
            ],
            [StreamChunk(text="Ada Park backs solar startups.")],
        ]
    )
    client = TestClient(create_app(_settings(), endpoint=endpoint))

    health_resp = client.get("/health")
    assert health_resp.status_code == 200
    assert health_resp.json()["llm_configured"] is True
    assert "createOnboardingThread" in health_resp.json()["tools"]

    upsert_resp = client.post("/documents", json={"items": DOCUMENTS})
    assert upsert_resp.status_code == 200
    assert upsert_resp.json() == {"upserted": 2}

    query_resp = client.post(
        "/query",
        json={
            "question": "Who invests in solar?",
            "requester": {"name": "Jo"},
            "history": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}],
        },
    )
    assert query_resp.status_code == 200
    payload = query_resp.json()
    assert payload["answer"] == "Ada Park backs solar startups."
    assert payload["messages"] == ['_Semantic search for "solar"..._', "Ada Park backs solar startups."]
    # system, date, two history turns, requester details, question, then
    # the tool request, its result and the answer.
    assert payload["transcript_length"] == 9

    source_resp = client.post("/sources/search", json={"query": "solar startups", "top_k": 1})
    assert source_resp.status_code == 200
    assert [item["identity"] for item in source_resp.json()["items"]] == ["slack-1"]

    member_resp = client.post("/members/search", json={"queries": ["solar"], "checked_in_only": True})
    assert member_resp.status_code == 200
    members = member_resp.json()["members"]
    assert [member["entity_id"] for member in members] == ["U002"]
    assert members[0]["name"] == "Ben Ortiz"


def test_query_without_model_returns_503() -> None:
    client = TestClient(create_app(_settings()))

    assert client.get("/health").json()["llm_configured"] is False
    resp = client.post("/query", json={"question": "anyone into solar?"})
    assert resp.status_code == 503


def test_model_failure_returns_502() -> None:
    class _BrokenEndpoint:
        async def stream(self, transcript, tools, tool_choice):
            raise ConnectionError("provider unavailable")
            yield  # pragma: no cover

    client = TestClient(create_app(_settings(), endpoint=_BrokenEndpoint()))

    resp = client.post("/query", json={"question": "anyone into solar?"})
    assert resp.status_code == 502
    assert "provider unavailable" in resp.json()["detail"]


def test_invalid_documents_are_rejected() -> None:
    client = TestClient(create_app(_settings()))

    resp = client.post("/documents", json={"items": [{"identity": "", "content": "x"}]})
    assert resp.status_code == 422

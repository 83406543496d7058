import pytest
from pydantic import ValidationError

from connections_agent.config import AgentConfig, Settings


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    monkeypatch.setenv("OPENROUTER_MODEL_NAME", "openai/gpt-4o-mini")
    monkeypatch.setenv("MAX_TOOL_CALL_ITERATIONS", "3")

    settings = Settings(_env_file=None)

    assert settings.llm_configured
    assert settings.model_name == "openai/gpt-4o-mini"
    assert settings.agent_config().max_tool_call_iterations == 3


def test_settings_defaults_without_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("OPENROUTER_MODEL_NAME", raising=False)
    monkeypatch.delenv("MAX_TOOL_CALL_ITERATIONS", raising=False)

    settings = Settings(_env_file=None)

    assert not settings.llm_configured
    assert settings.model_name == "google/gemini-flash-1.5"
    assert settings.openrouter_base_url == "https://openrouter.ai/api/v1"
    assert settings.agent_config() == AgentConfig()


def test_agent_config_requires_positive_budget() -> None:
    with pytest.raises(ValidationError):
        AgentConfig(max_tool_call_iterations=0)

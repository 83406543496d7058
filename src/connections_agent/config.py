"""Configuration models for the connections agent."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AgentConfig(BaseModel):
    """Configures the model/tool conversation loop."""

    max_tool_call_iterations: int = Field(default=5, ge=1)
    placeholder_text: str = Field(default="_thinking..._", min_length=1)
    announce_tool_use: bool = True


class SearchConfig(BaseModel):
    """Configures the semantic search tools."""

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)


class Settings(BaseSettings):
    """Process settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )

    openrouter_api_key: SecretStr = Field(default=SecretStr(""))
    model_name: str = Field(
        default="google/gemini-flash-1.5",
        validation_alias="openrouter_model_name",
    )
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    max_tool_call_iterations: int = Field(default=5, ge=1)
    chat_edit_interval_ms: int = Field(default=1000, ge=0)
    log_level: str = "INFO"

    @property
    def llm_configured(self) -> bool:
        return bool(self.openrouter_api_key.get_secret_value())

    def agent_config(self) -> AgentConfig:
        return AgentConfig(max_tool_call_iterations=self.max_tool_call_iterations)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

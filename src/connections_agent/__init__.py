"""Member connections agent package."""

from .config import AgentConfig, SearchConfig, Settings

__all__ = ["AgentConfig", "SearchConfig", "Settings"]

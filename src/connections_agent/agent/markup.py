"""Tag-based markup rendering for tool results fed back to the model."""

from __future__ import annotations

import dataclasses
from typing import Any
from xml.sax.saxutils import escape

from pydantic import BaseModel

_INDENT = "  "


def object_to_xml(value: Any) -> str:
    """Render a tool result as indented tag markup.

    Mapping keys become elements and list values repeat their element once per
    item. `None` renders as a self-closing element. A non-mapping top-level
    value has no tag to live in, so it is rendered as plain text.
    """

    plain = to_plain(value)
    if plain is None:
        return ""
    if isinstance(plain, dict):
        lines: list[str] = []
        for key, item in plain.items():
            _render_element(str(key), item, 0, lines)
        return "".join(lines)
    if isinstance(plain, list):
        lines = []
        for item in plain:
            _render_element("item", item, 0, lines)
        return "".join(lines)
    return _format_scalar(plain)


def to_plain(value: Any) -> Any:
    """Convert models and dataclasses into dicts, lists and scalars."""

    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return to_plain(value.to_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_plain(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(key): to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(item) for item in value]
    return value


def _render_element(tag: str, value: Any, depth: int, lines: list[str]) -> None:
    pad = _INDENT * depth
    if isinstance(value, list):
        for item in value:
            _render_element(tag, item, depth, lines)
        return
    if value is None or value == {}:
        lines.append(f"{pad}<{tag}/>\n")
        return
    if isinstance(value, dict):
        lines.append(f"{pad}<{tag}>\n")
        for key, item in value.items():
            _render_element(key, item, depth + 1, lines)
        lines.append(f"{pad}</{tag}>\n")
        return
    lines.append(f"{pad}<{tag}>{_format_scalar(value)}</{tag}>\n")


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return escape(str(value))

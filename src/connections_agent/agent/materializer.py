"""Reassembly of tool calls from streamed fragments."""

from __future__ import annotations

from connections_agent.types import ToolCall, ToolCallFragment


class ToolCallRecord:
    """In-progress tool call at one stream position."""

    def __init__(
        self,
        id: str | None = None,
        name: str | None = None,
        arguments: str | None = None,
    ) -> None:
        # Only the fragment that opens the record can supply the id.
        self.id = id or ""
        self.name = name or ""
        self.arguments_text = arguments or ""

    def append_name(self, fragment: str | None) -> None:
        # Names arrive whole; a later non-empty name replaces the earlier one.
        if fragment:
            self.name = fragment

    def append_arguments(self, fragment: str | None) -> None:
        if fragment:
            self.arguments_text += fragment

    def finalize(self) -> ToolCall | None:
        if not self.id or not self.name:
            return None
        return ToolCall(id=self.id, name=self.name, arguments_text=self.arguments_text)


class ToolCallMaterializer:
    """Accumulates fragments of one streamed response keyed by stream index.

    Fragments are keyed by position rather than id because only the first
    fragment at a position usually carries the id. Argument text is kept raw;
    whether it parses is decided later by the dispatcher.
    """

    def __init__(self) -> None:
        self._records: dict[int, ToolCallRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def add(self, fragment: ToolCallFragment) -> None:
        if fragment.index is None:
            return
        record = self._records.get(fragment.index)
        if record is None:
            self._records[fragment.index] = ToolCallRecord(fragment.id, fragment.name, fragment.arguments)
            return
        record.append_name(fragment.name)
        record.append_arguments(fragment.arguments)

    def valid_tool_calls(self) -> list[ToolCall]:
        calls: list[ToolCall] = []
        for index in sorted(self._records):
            call = self._records[index].finalize()
            if call is not None:
                calls.append(call)
        return calls

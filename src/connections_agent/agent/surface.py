"""Response surfaces that stream model output into chat messages."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

from connections_agent.types import FinalizedMessage

logger = logging.getLogger(__name__)


class ResponseSurface(Protocol):
    """Where the conversation driver writes the model's visible output."""

    async def open_placeholder(self) -> None:
        """Post a placeholder message that later text will replace."""

    async def append(self, text: str) -> None:
        """Append streamed text to the pending message."""

    async def finalize(self) -> FinalizedMessage:
        """Write out the pending message and return its text and id."""

    async def announce_tools(self, text: str) -> None:
        """Tell the reader which tools are being used."""


class MessageSink(Protocol):
    """Chat platform seam: post, edit and delete messages."""

    async def post(self, text: str) -> str:
        """Post a message and return its id."""

    async def update(self, message_id: str, text: str) -> None:
        """Replace the text of a posted message."""

    async def delete(self, message_id: str) -> None:
        """Remove a posted message."""


@dataclass(slots=True)
class PostedMessage:
    message_id: str
    text: str
    edits: int = 0


@dataclass
class InMemoryMessageSink:
    """Message sink that keeps messages in memory, in posting order."""

    messages: dict[str, PostedMessage] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    async def post(self, text: str) -> str:
        message_id = f"msg-{next(self._ids)}"
        self.messages[message_id] = PostedMessage(message_id=message_id, text=text)
        return message_id

    async def update(self, message_id: str, text: str) -> None:
        message = self.messages.get(message_id)
        if message is None:
            raise KeyError(f"Message not found: {message_id}")
        message.text = text
        message.edits += 1

    async def delete(self, message_id: str) -> None:
        self.messages.pop(message_id, None)

    def texts(self) -> list[str]:
        return [message.text for message in self.messages.values()]


class StreamingResponseSurface:
    """Streams text into one chat message at a time, throttling edits.

    Edits are sent at most once per `edit_interval_ms` and only once more
    than `min_stream_chars` characters have accumulated. `finalize` waits out
    any remaining cooldown before the last edit. A placeholder that never
    received text is deleted and the finalized message has no id.
    """

    def __init__(
        self,
        sink: MessageSink,
        *,
        placeholder: str = "_thinking..._",
        edit_interval_ms: int = 1000,
        min_stream_chars: int = 10,
    ) -> None:
        self.sink = sink
        self.placeholder = placeholder
        self.edit_interval_ms = edit_interval_ms
        self.min_stream_chars = min_stream_chars
        self._message_id: str | None = None
        self._text = ""
        self._last_update = 0.0

    async def open_placeholder(self) -> None:
        if self._message_id is not None or self._text:
            raise RuntimeError("Cannot start a new message while there is an in-progress message.")
        self._message_id = await self.sink.post(self.placeholder)
        self._text = ""
        self._last_update = time.monotonic()

    async def append(self, text: str) -> None:
        self._text += text
        now = time.monotonic()
        if (
            self._elapsed_ms(now) > self.edit_interval_ms
            and len(self._text) > self.min_stream_chars
        ):
            await self._update()
            self._last_update = now

    async def finalize(self) -> FinalizedMessage:
        if self._message_id is None:
            raise RuntimeError("No in-progress message to finalize; open_placeholder() must be called first.")
        text = self._text
        message_id: str | None = self._message_id

        if text:
            cooldown_ms = self.edit_interval_ms - self._elapsed_ms(time.monotonic())
            if cooldown_ms > 0:
                await asyncio.sleep(cooldown_ms / 1000.0)
            await self._update()
        else:
            await self.sink.delete(self._message_id)
            message_id = None

        self._message_id = None
        self._text = ""
        logger.debug("Finalized message %s (%d chars)", message_id, len(text))
        return FinalizedMessage(text=text, message_id=message_id)

    async def announce_tools(self, text: str) -> None:
        await self.sink.post(f"_{text}..._")

    async def _update(self) -> None:
        if self._message_id is None:
            raise RuntimeError("No in-progress message found; open_placeholder() must be called first.")
        await self.sink.update(self._message_id, self._text)

    def _elapsed_ms(self, now: float) -> float:
        return (now - self._last_update) * 1000.0

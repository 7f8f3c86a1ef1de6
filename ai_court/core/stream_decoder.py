# ai_court/core/stream_decoder.py
"""Incremental decoder for server-sent chat-completion streams.

The upstream sends ``data: <json>`` lines carrying ``choices[0].delta.content``
and ends with ``data: [DONE]``. Reads may split a frame (or a multi-byte
character) anywhere, so undecoded text is buffered until its newline arrives.
"""

import codecs
import json
import inspect
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Callable, List, Optional, Union
from loguru import logger

from .data_models import Message, StreamChunk

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class Delta:
    """One decoded fragment. ``done`` marks the end of the stream."""
    content: str
    done: bool = False


class StreamDecoder:
    """Stateful frame decoder; feed it raw chunks in arrival order."""

    def __init__(self):
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.finished = False
        self.frames_seen = 0
        self.frames_skipped = 0

    def feed(self, chunk: Union[bytes, str]) -> List[Delta]:
        """Decode one read. Returns the deltas completed by it, in order."""
        if self.finished:
            return []

        text = self._utf8.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        self._buffer += text
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        deltas: List[Delta] = []
        for line in lines:
            delta = self._decode_line(line)
            if delta is None:
                continue
            deltas.append(delta)
            if delta.done:
                break
        return deltas

    def close(self) -> List[Delta]:
        """Flush the trailing partial frame and emit the final ``done`` delta."""
        if self.finished:
            return []

        tail = self._buffer + self._utf8.decode(b"", final=True)
        self._buffer = ""
        deltas: List[Delta] = []
        if tail:
            delta = self._decode_line(tail)
            if delta is not None:
                deltas.append(delta)
        if not self.finished:
            self.finished = True
            deltas.append(Delta("", done=True))
        return deltas

    def _decode_line(self, line: str) -> Optional[Delta]:
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            return None

        self.frames_seen += 1
        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            self.finished = True
            return Delta("", done=True)

        try:
            parsed = json.loads(data)
            content = parsed["choices"][0]["delta"].get("content") or ""
        except (json.JSONDecodeError, KeyError, IndexError, TypeError, AttributeError):
            self.frames_skipped += 1
            logger.debug(f"Skipping malformed frame: {data[:80]}")
            return None

        if not content:
            return None
        return Delta(content)


async def iter_deltas(stream: AsyncIterable[Union[bytes, str]]) -> AsyncIterator[Delta]:
    """Yield deltas from a raw chunk stream.

    Always ends with exactly one ``Delta(done=True)``, whether or not the
    sentinel arrived. The upstream iterator is closed once the sentinel is seen.
    """
    decoder = StreamDecoder()
    try:
        async for chunk in stream:
            for delta in decoder.feed(chunk):
                yield delta
            if decoder.finished:
                break
        if not decoder.finished:
            logger.debug("Stream ended without sentinel; treating as complete")
        for delta in decoder.close():
            yield delta
    finally:
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()


async def decode(
    stream: AsyncIterable[Union[bytes, str]],
    on_delta: Callable[[str, bool], object]
) -> None:
    """Feed every delta of ``stream`` to ``on_delta(content, done)``.

    ``on_delta`` may be a plain function or a coroutine function; it is
    awaited before the next frame is processed.
    """
    async for delta in iter_deltas(stream):
        result = on_delta(delta.content, delta.done)
        if inspect.isawaitable(result):
            await result


async def notify(listener: Optional[Callable[..., object]], chunk) -> None:
    """Hand ``chunk`` to a sync or async listener."""
    if listener is None:
        return
    result = listener(chunk)
    if inspect.isawaitable(result):
        await result


async def fold_into(
    stream: AsyncIterable[Union[bytes, str]],
    message: Message,
    listener: Optional[Callable[..., object]] = None
) -> Message:
    """Append every delta of ``stream`` to a streaming ``message``.

    Each fragment is forwarded to ``listener`` as a ``StreamChunk``. On normal
    completion the message is sealed and a final ``done`` chunk is sent.
    Transport errors propagate with the message still open, so the caller
    decides how the failure is shown.
    """
    async for delta in iter_deltas(stream):
        if delta.done:
            continue
        message.append(delta.content)
        await notify(listener, StreamChunk(role=message.role, content=delta.content))
    message.complete()
    await notify(listener, StreamChunk(role=message.role, content="", done=True))
    return message

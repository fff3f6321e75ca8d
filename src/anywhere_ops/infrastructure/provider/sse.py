"""Incremental parser for OpenAI-style ``text/event-stream`` chat completions.

The parser is a plain object fed one network chunk at a time, so the
cross-chunk buffering can be exercised without any HTTP:

    parser = SSEChatParser()
    events = parser.feed(b'data: {"choices":[{"delta":{"content":"Hel')
    events += parser.feed(b'lo"}}]}\\n\\n')
    parser.state.content   # "Hello"
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, List, Optional

from anywhere_ops.domain import StreamEvent, StreamEventKind, StreamState

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_delta(payload: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` if it is a string, else ``None``."""
    try:
        content = payload["choices"][0]["delta"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


class SSEChatParser:
    """Turns raw stream bytes into ``StreamEvent`` objects.

    Only complete lines are parsed; the unterminated tail stays in
    ``state.buffer`` until the next chunk completes it.  UTF-8 sequences split
    across chunks are held back by an incremental decoder.
    """

    def __init__(self, state: Optional[StreamState] = None) -> None:
        self.state = state if state is not None else StreamState()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes) -> List[StreamEvent]:
        self.state.buffer += self._decoder.decode(chunk)
        events: List[StreamEvent] = []
        while True:
            newline = self.state.buffer.find("\n")
            if newline == -1:
                break
            line = self.state.buffer[:newline].rstrip("\r")
            self.state.buffer = self.state.buffer[newline + 1:]
            event = self._parse_line(line)
            if event is not None:
                events.append(event)
        return events

    def _parse_line(self, line: str) -> Optional[StreamEvent]:
        if not line.startswith(DATA_PREFIX):
            return None
        data = line[len(DATA_PREFIX):]
        if data == DONE_SENTINEL:
            self.state.done_received = True
            return StreamEvent(StreamEventKind.DONE)
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            self.state.malformed_payloads += 1
            logger.debug("Skipping malformed SSE payload: %.120s", data)
            return None
        delta = extract_delta(payload)
        if delta is None:
            return None
        self.state.deltas.append(delta)
        return StreamEvent(StreamEventKind.CHUNK, delta)

"""Domain models: requests, operation kinds, provider call specs, stream events, results. Pure data, no I/O."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class BuiltinOperation(str, Enum):
    """Built-in operation ids (wire values are camelCase, as sent by the UI)."""
    GENERAL_CHAT = "generalChat"
    IMAGE_GENERATION = "imageGeneration"
    TEXT_REWRITE = "textRewrite"
    TEXT_TRANSLATION = "textTranslation"
    TEXT_SUMMARIZATION = "textSummarization"
    TEXT_TO_SPEECH = "textToSpeech"
    EMAIL_REPLY = "emailReply"
    WHATSAPP_RESPONSE = "whatsAppResponse"
    SPEECH_TO_TEXT = "speechToText"
    UNICODE_SYMBOLS = "unicodeSymbols"

    @property
    def prompt_key(self) -> str:
        """PascalCase key used for system prompt overrides (e.g. ``TextRewrite``)."""
        return self.value[0].upper() + self.value[1:]

    @classmethod
    def parse(cls, identifier: str) -> Optional["BuiltinOperation"]:
        """Return the built-in matching *identifier* (camelCase or PascalCase), else ``None``."""
        for op in cls:
            if identifier == op.value or identifier == op.prompt_key:
                return op
        return None


class CallFamily(str, Enum):
    """Provider endpoint family an operation is dispatched to."""
    CHAT = "chat"
    IMAGE = "image"
    TRANSCRIPTION = "transcription"
    SPEECH = "speech"

    @property
    def supports_streaming(self) -> bool:
        return self is CallFamily.CHAT


@dataclass(frozen=True)
class BuiltIn:
    operation: BuiltinOperation

    @property
    def identifier(self) -> str:
        return self.operation.value


@dataclass(frozen=True)
class Custom:
    task_id: str

    @property
    def identifier(self) -> str:
        return self.task_id


OperationKind = Union[BuiltIn, Custom]


@dataclass(frozen=True)
class OperationRequest:
    """One user-triggered action.  Immutable; consumed once."""
    operation_type: str
    prompt: str
    selected_text: Optional[str] = None
    options: Mapping[str, str] = field(default_factory=dict)
    audio_file_path: Optional[str] = None

    def option(self, key: str, default: str) -> str:
        value = self.options.get(key)
        return value if value is not None else default


@dataclass
class ProviderCallSpec:
    """Fully resolved outbound call.  Built per request, discarded after the call."""
    family: Optional[CallFamily]
    method: str
    url: str
    headers: Dict[str, str]
    json: Optional[Dict[str, Any]] = None
    data: Optional[Dict[str, str]] = None
    files: Optional[Dict[str, Tuple[str, bytes, str]]] = None
    stream: bool = False
    # Extra values the response parser needs (e.g. TTS output format)
    context: Dict[str, str] = field(default_factory=dict)

    @property
    def model(self) -> str:
        if self.json is not None:
            return str(self.json.get("model", ""))
        if self.data is not None:
            return self.data.get("model", "")
        return ""


class StreamEventKind(str, Enum):
    CHUNK = "chunk"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StreamEvent:
    """Incremental notification emitted while a streaming operation runs.

    ``content`` is the delta contributed by one SSE event, never the
    cumulative text.  ``done`` and ``cancelled`` events carry no content.
    """
    kind: StreamEventKind
    content: str = ""

    @property
    def is_final(self) -> bool:
        return self.kind is not StreamEventKind.CHUNK

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "content": self.content, "done": self.is_final}


@dataclass
class StreamState:
    """In-progress streaming operation.

    ``buffer`` only ever holds the tail of the stream that has no terminating
    newline yet.  ``deltas`` is append-only.
    """
    buffer: str = ""
    deltas: List[str] = field(default_factory=list)
    malformed_payloads: int = 0
    done_received: bool = False

    @property
    def content(self) -> str:
        return "".join(self.deltas)


class ResultStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ResultKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"


@dataclass
class OperationResult:
    """Terminal outcome of one operation.

    Completed results populate exactly one of text ``content``, ``image_url``
    or ``audio_path``; failed results carry only ``error``/``error_type``.
    Cancellation is its own status so callers can tell it apart from both.
    """
    status: ResultStatus
    kind: ResultKind = ResultKind.TEXT
    content: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    image_url: Optional[str] = None
    audio_path: Optional[str] = None
    audio_format: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is ResultStatus.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.status is ResultStatus.CANCELLED

    @classmethod
    def text(cls, content: str) -> "OperationResult":
        return cls(status=ResultStatus.COMPLETED, kind=ResultKind.TEXT, content=content)

    @classmethod
    def image(cls, url: str) -> "OperationResult":
        return cls(status=ResultStatus.COMPLETED, kind=ResultKind.IMAGE, image_url=url)

    @classmethod
    def audio(cls, path: str, audio_format: str) -> "OperationResult":
        return cls(
            status=ResultStatus.COMPLETED,
            kind=ResultKind.AUDIO,
            audio_path=path,
            audio_format=audio_format,
        )

    @classmethod
    def failure(cls, error: Exception, kind: ResultKind = ResultKind.TEXT) -> "OperationResult":
        return cls(
            status=ResultStatus.FAILED,
            kind=kind,
            error=str(error),
            error_type=type(error).__name__,
        )

    @classmethod
    def cancellation(cls) -> "OperationResult":
        return cls(status=ResultStatus.CANCELLED, kind=ResultKind.TEXT)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "status": self.status.value,
            "result_kind": self.kind.value,
            "content": self.content,
            "error": self.error,
            "error_type": self.error_type,
            "image_url": self.image_url,
            "audio_path": self.audio_path,
            "audio_format": self.audio_format,
        }


class CancelSignal:
    """Shared cancellation flag for the in-flight streaming operation.

    Thread-safe so a host may set it from a signal handler or another thread
    while the event loop is reading the stream.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    def is_set(self) -> bool:
        return self._event.is_set()

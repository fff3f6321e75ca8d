"""Ports (abstract interfaces) used by the application layer.

Each port is a ``Protocol`` so the application depends only on the *shape* of the
collaborator, not on a concrete implementation.  Infrastructure adapters must satisfy
these shapes; the application never imports from infrastructure.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol

from anywhere_ops.domain import CancelSignal, CustomTask, OperationResult, ProviderCallSpec, StreamEvent

StreamListener = Callable[[StreamEvent], None]


class CustomTaskStore(Protocol):
    """Read access to user-authored tasks (id -> prompt template + options)."""

    def get(self, task_id: str) -> Optional[CustomTask]: ...

    def list(self) -> List[CustomTask]: ...


class MediaStore(Protocol):
    """Persists generated media and returns a reference the host can open."""

    def save_audio(self, data: bytes, audio_format: str) -> str: ...


class ProviderClient(Protocol):
    """OpenAI-compatible provider calls, one method per call family.

    Blocking methods return the raw provider payload for the router to
    post-process.  ``stream_chat`` returns the terminal result itself because
    cancellation is decided while the stream is being read.
    """

    async def stream_chat(
        self,
        spec: ProviderCallSpec,
        *,
        on_event: Optional[StreamListener] = None,
        cancel: Optional[CancelSignal] = None,
    ) -> OperationResult: ...

    async def chat(self, spec: ProviderCallSpec) -> str: ...

    async def generate_image(self, spec: ProviderCallSpec) -> str: ...

    async def transcribe(self, spec: ProviderCallSpec) -> str: ...

    async def synthesize(self, spec: ProviderCallSpec) -> bytes: ...

    async def list_models(self, spec: ProviderCallSpec, timeout_s: Optional[float] = None) -> List[str]: ...

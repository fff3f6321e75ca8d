"""Operation routing: classify a request, build the provider call, run it, normalize the result.

``OperationRouter.process`` is the single entry point for hosts.  It never
raises the operation error taxonomy; every failure comes back as a failed
``OperationResult`` carrying the error text verbatim, and a cancelled stream
comes back with ``ResultStatus.CANCELLED``.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from anywhere_ops.application.ports import CustomTaskStore, MediaStore, ProviderClient, StreamListener
from anywhere_ops.application.prompts import PromptResolver, build_user_prompt
from anywhere_ops.application.request_builder import RequestBuilder
from anywhere_ops.application.text_processing import normalize_transcription, process_llm_response
from anywhere_ops.application.token_budget import validate_prompt_length
from anywhere_ops.config import AppConfig
from anywhere_ops.config.constants import MODEL_LIST_TIMEOUT_S
from anywhere_ops.domain import (
    BuiltIn,
    BuiltinOperation,
    CallFamily,
    CancelSignal,
    Custom,
    OperationError,
    OperationKind,
    OperationRequest,
    OperationResult,
    ResultKind,
    UnknownOperation,
    family_for,
)

logger = logging.getLogger(__name__)

_RESULT_KINDS = {
    CallFamily.CHAT: ResultKind.TEXT,
    CallFamily.TRANSCRIPTION: ResultKind.TEXT,
    CallFamily.IMAGE: ResultKind.IMAGE,
    CallFamily.SPEECH: ResultKind.AUDIO,
}


class OperationRouter:
    """Dispatch ``OperationRequest`` objects to the four provider call families."""

    def __init__(
        self,
        config: AppConfig,
        provider: ProviderClient,
        *,
        custom_tasks: Optional[CustomTaskStore] = None,
        media_store: Optional[MediaStore] = None,
        api_key_provider: Optional[Callable[[], str]] = None,
    ) -> None:
        self._config = config
        self._provider = provider
        self._custom_tasks = custom_tasks
        self._media_store = media_store
        self._api_key_provider = api_key_provider or config.get_api_key
        self._resolver = PromptResolver(custom_tasks, overrides=config.system_prompts)
        self._builder = RequestBuilder(config)

    def classify(self, identifier: str) -> Tuple[OperationKind, CallFamily]:
        """Built-ins first, then custom tasks (always chat); anything else is unknown."""
        builtin = BuiltinOperation.parse(identifier)
        if builtin is not None:
            return BuiltIn(builtin), family_for(builtin)
        if self._custom_tasks is not None and self._custom_tasks.get(identifier) is not None:
            return Custom(identifier), CallFamily.CHAT
        raise UnknownOperation(identifier)

    def supports_streaming(self, identifier: str) -> bool:
        """Custom and unrecognised ids are text operations and stream."""
        builtin = BuiltinOperation.parse(identifier)
        if builtin is None:
            return True
        return family_for(builtin).supports_streaming

    async def process(
        self,
        request: OperationRequest,
        *,
        stream: bool = False,
        on_event: Optional[StreamListener] = None,
        cancel: Optional[CancelSignal] = None,
    ) -> OperationResult:
        result_kind = ResultKind.TEXT
        try:
            validate_prompt_length(request.prompt)
            kind, family = self.classify(request.operation_type)
            result_kind = _RESULT_KINDS[family]
            use_stream = stream and family.supports_streaming
            logger.info(
                "Operation %s family=%s stream=%s",
                kind.identifier, family.value, use_stream,
            )
            if family is CallFamily.CHAT:
                return await self._chat(request, kind, stream=use_stream, on_event=on_event, cancel=cancel)
            if family is CallFamily.IMAGE:
                return await self._image(request)
            if family is CallFamily.TRANSCRIPTION:
                return await self._transcription(request)
            return await self._speech(request)
        except OperationError as e:
            logger.warning("Operation %s failed: %s: %s", request.operation_type, type(e).__name__, e)
            return OperationResult.failure(e, kind=result_kind)

    async def _chat(
        self,
        request: OperationRequest,
        kind: OperationKind,
        *,
        stream: bool,
        on_event: Optional[StreamListener],
        cancel: Optional[CancelSignal],
    ) -> OperationResult:
        system_prompt = self._resolver.resolve(kind, request.options)
        user_prompt = build_user_prompt(request.prompt, request.selected_text)
        spec = self._builder.chat(system_prompt, user_prompt, api_key=self._api_key_provider(), stream=stream)
        if stream:
            return await self._provider.stream_chat(spec, on_event=on_event, cancel=cancel)
        content = await self._provider.chat(spec)
        return OperationResult.text(process_llm_response(content))

    async def _image(self, request: OperationRequest) -> OperationResult:
        spec = self._builder.image(request, api_key=self._api_key_provider())
        url = await self._provider.generate_image(spec)
        return OperationResult.image(url)

    async def _transcription(self, request: OperationRequest) -> OperationResult:
        spec = self._builder.transcription(request, api_key=self._api_key_provider())
        transcript = await self._provider.transcribe(spec)
        return OperationResult.text(normalize_transcription(transcript))

    async def _speech(self, request: OperationRequest) -> OperationResult:
        spec = self._builder.speech(request, api_key=self._api_key_provider())
        if self._media_store is None:
            raise OperationError("No media store configured for synthesized audio")
        audio = await self._provider.synthesize(spec)
        audio_format = spec.context["audio_format"]
        try:
            path = self._media_store.save_audio(audio, audio_format)
        except OSError as e:
            raise OperationError(f"Failed to save audio: {e}") from e
        logger.info("Saved %d bytes of %s audio to %s", len(audio), audio_format, path)
        return OperationResult.audio(path, audio_format)

    async def list_models(self) -> List[str]:
        """Model ids offered by the configured backend; raises ``OperationError`` on failure."""
        spec = self._builder.models(api_key=self._api_key_provider())
        return await self._provider.list_models(spec, timeout_s=MODEL_LIST_TIMEOUT_S)

    async def test_connection(self) -> None:
        await self.list_models()


class OperationSession:
    """One host session: a router plus the cancellation signal of its in-flight stream.

    The signal is reset when a streaming operation starts, so a cancel that
    targeted an earlier operation never leaks into the next one.
    """

    def __init__(self, router: OperationRouter) -> None:
        self.router = router
        self.cancel_signal = CancelSignal()

    async def run(
        self,
        request: OperationRequest,
        *,
        stream: bool = True,
        on_event: Optional[StreamListener] = None,
    ) -> OperationResult:
        if stream:
            self.cancel_signal.reset()
        return await self.router.process(request, stream=stream, on_event=on_event, cancel=self.cancel_signal)

    def cancel(self) -> None:
        logger.info("Cancellation requested")
        self.cancel_signal.set()

"""OpenAI-compatible HTTP provider client (httpx).

Implements the ``ProviderClient`` port: one blocking method per call family
plus ``stream_chat``, the streaming protocol engine for chat completions.

Non-2xx answers raise ``ProviderHttpError`` with the status and the body
verbatim; connect/read/timeout failures raise ``TransportError``.  Nothing is
retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, List, Optional

import httpx

from anywhere_ops.application.ports import StreamListener
from anywhere_ops.application.text_processing import process_llm_response
from anywhere_ops.config import AppConfig
from anywhere_ops.config.constants import PROVIDER_TIMEOUT_S, STREAM_DONE_GRACE_S
from anywhere_ops.domain import (
    CallFamily,
    CancelSignal,
    OperationResult,
    ProviderCallSpec,
    ProviderHttpError,
    ProviderParseError,
    StreamEvent,
    StreamEventKind,
    TransportError,
)
from anywhere_ops.infrastructure.provider.sse import SSEChatParser

logger = logging.getLogger(__name__)

_ERROR_LABELS = {
    CallFamily.CHAT: "API Error",
    CallFamily.IMAGE: "Image Generation Error",
    CallFamily.TRANSCRIPTION: "Transcription Error",
    CallFamily.SPEECH: "TTS Error",
}


def _describe(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def _ignore(event: StreamEvent) -> None:  # noqa: ARG001
    pass


class HttpProviderClient:
    """Talks to one OpenAI-compatible backend.

    A fresh ``httpx.AsyncClient`` is opened per call so no connection (or
    credential) outlives the operation.  *transport* is passed through to
    httpx and lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        timeout_s: float = PROVIDER_TIMEOUT_S,
        *,
        done_grace_s: float = STREAM_DONE_GRACE_S,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout_s
        self._done_grace = done_grace_s
        self._debug = debug
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "HttpProviderClient":
        return cls(
            timeout_s=config.timeout_s,
            done_grace_s=config.done_grace_s,
            debug=config.enable_debug_logging,
            transport=transport,
        )

    def _client(self, timeout_s: Optional[float] = None) -> httpx.AsyncClient:
        timeout = httpx.Timeout(timeout_s if timeout_s is not None else self._timeout)
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    def _log(self, msg: str, *args: Any) -> None:
        # Debug logging in the config promotes request traces to INFO
        logger.log(logging.INFO if self._debug else logging.DEBUG, msg, *args)

    async def _send(self, spec: ProviderCallSpec, timeout_s: Optional[float] = None) -> httpx.Response:
        self._log("%s %s model=%s", spec.method, spec.url, spec.model or "-")
        try:
            async with self._client(timeout_s) as client:
                response = await client.request(
                    spec.method,
                    spec.url,
                    headers=spec.headers,
                    json=spec.json,
                    data=spec.data,
                    files=spec.files,
                )
        except httpx.HTTPError as e:
            logger.warning("Request to %s failed: %s", spec.url, _describe(e))
            raise TransportError(f"Request failed: {_describe(e)}") from e
        self._log("Status: %s", response.status_code)
        if response.is_error:
            self._log("Error Body: %s", response.text)
            label = _ERROR_LABELS.get(spec.family, "API Error") if spec.family else "API Error"
            raise ProviderHttpError(response.status_code, response.text, label)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ProviderParseError(f"Failed to parse response: {e}") from e

    # ------------------------------------------------------------------
    # Blocking calls
    # ------------------------------------------------------------------

    async def chat(self, spec: ProviderCallSpec) -> str:
        data = self._json(await self._send(spec))
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str):
            raise ProviderParseError("No content in response")
        return content

    async def generate_image(self, spec: ProviderCallSpec) -> str:
        data = self._json(await self._send(spec))
        try:
            url = data["data"][0]["url"]
        except (KeyError, IndexError, TypeError):
            url = None
        if not isinstance(url, str):
            raise ProviderParseError("No image URL in response")
        return url

    async def transcribe(self, spec: ProviderCallSpec) -> str:
        """Plain-text body, or ``{"text": ...}`` from servers that ignore response_format."""
        response = await self._send(spec)
        text = response.text
        try:
            data = json.loads(text)
        except ValueError:
            return text
        if isinstance(data, dict) and isinstance(data.get("text"), str):
            return data["text"]
        return text

    async def synthesize(self, spec: ProviderCallSpec) -> bytes:
        response = await self._send(spec)
        self._log("Received %d bytes of audio data", len(response.content))
        return response.content

    async def list_models(self, spec: ProviderCallSpec, timeout_s: Optional[float] = None) -> List[str]:
        data = self._json(await self._send(spec, timeout_s))
        try:
            return [m["id"] for m in data["data"]]
        except (KeyError, TypeError) as e:
            raise ProviderParseError(f"Failed to parse models: {e}") from e

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def _next_chunk(self, chunks: AsyncIterator[bytes], after_done: bool) -> bytes:
        if after_done:
            return await asyncio.wait_for(chunks.__anext__(), timeout=self._done_grace)
        return await chunks.__anext__()

    async def stream_chat(
        self,
        spec: ProviderCallSpec,
        *,
        on_event: Optional[StreamListener] = None,
        cancel: Optional[CancelSignal] = None,
    ) -> OperationResult:
        """Run a streaming chat completion and return the terminal result.

        Events reach *on_event* in stream order.  The cancel signal is checked
        once per received chunk, before the chunk is parsed; once it is seen the
        chunk is dropped, a ``cancelled`` event is emitted and the result is
        ``ResultStatus.CANCELLED``.
        """
        emit = on_event or _ignore
        parser = SSEChatParser()
        self._log("%s %s model=%s (stream)", spec.method, spec.url, spec.model or "-")
        try:
            async with self._client() as client:
                async with client.stream(spec.method, spec.url, headers=spec.headers, json=spec.json) as response:
                    self._log("Status: %s", response.status_code)
                    if response.is_error:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        self._log("Error Body: %s", body)
                        raise ProviderHttpError(response.status_code, body)

                    chunks = response.aiter_bytes()
                    while True:
                        try:
                            chunk = await self._next_chunk(chunks, parser.state.done_received)
                        except StopAsyncIteration:
                            break
                        except asyncio.TimeoutError:
                            logger.info(
                                "Provider kept the stream open %.1fs after [DONE]; closing it",
                                self._done_grace,
                            )
                            break
                        if cancel is not None and cancel.is_set():
                            logger.info("Stream cancelled after %d deltas", len(parser.state.deltas))
                            emit(StreamEvent(StreamEventKind.CANCELLED))
                            return OperationResult.cancellation()
                        for event in parser.feed(chunk):
                            emit(event)
        except httpx.HTTPError as e:
            logger.warning("Stream from %s failed: %s", spec.url, _describe(e))
            raise TransportError(f"Stream error: {_describe(e)}") from e

        state = parser.state
        if state.malformed_payloads:
            logger.warning("Skipped %d malformed SSE payload(s)", state.malformed_payloads)
        self._log("Full streamed content length: %d", len(state.content))
        return OperationResult.text(process_llm_response(state.content))

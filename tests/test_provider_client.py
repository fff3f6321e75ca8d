"""Tests for HttpProviderClient against httpx.MockTransport (no network)."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import List

import httpx
import pytest

from anywhere_ops.application.request_builder import RequestBuilder
from anywhere_ops.config import AppConfig
from anywhere_ops.domain import (
    CancelSignal,
    OperationRequest,
    ProviderHttpError,
    ProviderParseError,
    ResultStatus,
    StreamEvent,
    StreamEventKind,
    TransportError,
)
from anywhere_ops.infrastructure.provider import HttpProviderClient

_CONFIG = AppConfig(api_base_url="http://llm.test", llm_model="m")
_BUILDER = RequestBuilder(_CONFIG)


def _client(handler, **kwargs) -> HttpProviderClient:
    return HttpProviderClient(transport=httpx.MockTransport(handler), **kwargs)


def _chat_spec(stream: bool = True):
    return _BUILDER.chat("sys", "user", api_key="sk", stream=stream)


def _streaming_handler(chunks: List[bytes], status: int = 200):
    async def _body():
        for chunk in chunks:
            yield chunk

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=_body(), headers={"content-type": "text/event-stream"})

    return handler


class _Recorder:
    def __init__(self) -> None:
        self.events: List[StreamEvent] = []

    def __call__(self, event: StreamEvent) -> None:
        self.events.append(event)

    @property
    def deltas(self) -> List[str]:
        return [e.content for e in self.events if e.kind is StreamEventKind.CHUNK]

    @property
    def kinds(self) -> List[StreamEventKind]:
        return [e.kind for e in self.events]


# ---------------------------------------------------------------------------
# stream_chat
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_stream_chat_emits_deltas_and_completes(sse_body):
    body = sse_body(["<think>hmm</think>", "Hel", "lo  ", "world"])
    recorder = _Recorder()
    client = _client(_streaming_handler([body[:40], body[40:90], body[90:]]))

    result = await client.stream_chat(_chat_spec(), on_event=recorder)

    assert result.status is ResultStatus.COMPLETED
    assert result.content == "Hello world"
    assert recorder.deltas == ["<think>hmm</think>", "Hel", "lo  ", "world"]
    assert recorder.kinds[-1] is StreamEventKind.DONE


@pytest.mark.asyncio
async def test_stream_chat_sends_stream_request():
    seen = {}

    async def _body():
        yield b"data: [DONE]\n\n"

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=_body())

    await _client(handler).stream_chat(_chat_spec())

    assert seen["url"] == "http://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk"
    assert seen["body"]["stream"] is True


@pytest.mark.asyncio
async def test_stream_chat_cancel_stops_at_next_chunk(sse_body):
    chunks = [sse_body([d], done=False) for d in ["one ", "two ", "three "]] + [b"data: [DONE]\n\n"]
    cancel = CancelSignal()
    recorder = _Recorder()

    def on_event(event: StreamEvent) -> None:
        recorder(event)
        if event.kind is StreamEventKind.CHUNK:
            cancel.set()

    result = await _client(_streaming_handler(chunks)).stream_chat(
        _chat_spec(), on_event=on_event, cancel=cancel
    )

    assert result.status is ResultStatus.CANCELLED
    assert result.cancelled and not result.success
    assert recorder.deltas == ["one "]
    assert recorder.kinds == [StreamEventKind.CHUNK, StreamEventKind.CANCELLED]


@pytest.mark.asyncio
async def test_stream_chat_cancel_set_before_first_chunk(sse_body):
    cancel = CancelSignal()
    cancel.set()
    recorder = _Recorder()

    result = await _client(_streaming_handler([sse_body(["x"])])).stream_chat(
        _chat_spec(), on_event=recorder, cancel=cancel
    )

    assert result.cancelled
    assert recorder.deltas == []
    assert recorder.kinds == [StreamEventKind.CANCELLED]


@pytest.mark.asyncio
async def test_stream_chat_http_error_keeps_body():
    handler = _streaming_handler([b'{"error": "invalid key"}'], status=401)
    with pytest.raises(ProviderHttpError) as exc_info:
        await _client(handler).stream_chat(_chat_spec())
    assert exc_info.value.status == 401
    assert str(exc_info.value) == 'API Error (401): {"error": "invalid key"}'


@pytest.mark.asyncio
async def test_stream_chat_connect_error_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    with pytest.raises(TransportError, match="Stream error"):
        await _client(handler).stream_chat(_chat_spec())


@pytest.mark.asyncio
async def test_stream_chat_read_error_mid_stream(sse_body):
    async def _body():
        yield sse_body(["partial"], done=False)
        raise httpx.ReadError("reset by peer")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_body())

    recorder = _Recorder()
    with pytest.raises(TransportError):
        await _client(handler).stream_chat(_chat_spec(), on_event=recorder)
    assert recorder.deltas == ["partial"]


@pytest.mark.asyncio
async def test_stream_chat_stops_when_peer_lingers_after_done(sse_body):
    async def _body():
        yield sse_body(["answer"])
        await asyncio.sleep(30)
        yield sse_body(["late"])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_body())

    recorder = _Recorder()
    result = await asyncio.wait_for(
        _client(handler, done_grace_s=0.05).stream_chat(_chat_spec(), on_event=recorder),
        timeout=5,
    )

    assert result.success
    assert result.content == "answer"
    assert recorder.deltas == ["answer"]


@pytest.mark.asyncio
async def test_stream_chat_without_done_completes_on_close(sse_body):
    result = await _client(_streaming_handler([sse_body(["no ", "sentinel"], done=False)])).stream_chat(
        _chat_spec()
    )
    assert result.success
    assert result.content == "no sentinel"


@pytest.mark.asyncio
async def test_stream_chat_logs_malformed_payload_count(sse_body, caplog):
    body = b"data: {oops\n\n" + sse_body(["ok"])
    with caplog.at_level(logging.WARNING, logger="anywhere_ops.infrastructure.provider.client"):
        result = await _client(_streaming_handler([body])).stream_chat(_chat_spec())
    assert result.content == "ok"
    assert "Skipped 1 malformed SSE payload" in caplog.text


# ---------------------------------------------------------------------------
# Blocking calls
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_chat_returns_message_content():
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content)["stream"] is False
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "Hi!"}}]})

    assert await _client(handler).chat(_chat_spec(stream=False)) == "Hi!"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"choices": []}, {"choices": [{"message": {}}]}, {"error": "x"}])
async def test_chat_missing_content_is_parse_error(payload):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with pytest.raises(ProviderParseError):
        await _client(handler).chat(_chat_spec(stream=False))


@pytest.mark.asyncio
async def test_chat_non_json_body_is_parse_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(ProviderParseError):
        await _client(handler).chat(_chat_spec(stream=False))


@pytest.mark.asyncio
async def test_generate_image_returns_url():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/images/generations"
        return httpx.Response(200, json={"data": [{"url": "https://img.test/fox.png"}]})

    spec = _BUILDER.image(OperationRequest("imageGeneration", "fox"), api_key="sk")
    assert await _client(handler).generate_image(spec) == "https://img.test/fox.png"


@pytest.mark.asyncio
async def test_generate_image_error_label():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="model overloaded")

    spec = _BUILDER.image(OperationRequest("imageGeneration", "fox"), api_key="sk")
    with pytest.raises(ProviderHttpError) as exc_info:
        await _client(handler).generate_image(spec)
    assert str(exc_info.value) == "Image Generation Error (500): model overloaded"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, expected",
    [
        ("plain transcript", "plain transcript"),
        ('{"text": "json transcript"}', "json transcript"),
        ('{"other": 1}', '{"other": 1}'),
    ],
)
async def test_transcribe_plain_or_json(tmp_path, body, expected):
    audio = tmp_path / "a.mp3"
    audio.write_bytes(b"ID3")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="file"; filename="a.mp3"' in request.content
        return httpx.Response(200, text=body)

    spec = _BUILDER.transcription(OperationRequest("speechToText", "", audio_file_path=str(audio)), api_key="sk")
    assert await _client(handler).transcribe(spec) == expected


@pytest.mark.asyncio
async def test_transcribe_error_label(tmp_path):
    audio = tmp_path / "a.mp3"
    audio.write_bytes(b"ID3")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="bad audio")

    spec = _BUILDER.transcription(OperationRequest("speechToText", "", audio_file_path=str(audio)), api_key="sk")
    with pytest.raises(ProviderHttpError, match=r"^Transcription Error \(400\): bad audio$"):
        await _client(handler).transcribe(spec)


@pytest.mark.asyncio
async def test_synthesize_returns_bytes():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"\xff\xfbMP3DATA")

    spec = _BUILDER.speech(OperationRequest("textToSpeech", "hello"), api_key="sk")
    assert await _client(handler).synthesize(spec) == b"\xff\xfbMP3DATA"


@pytest.mark.asyncio
async def test_synthesize_error_label():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, text="unknown voice")

    spec = _BUILDER.speech(OperationRequest("textToSpeech", "hello"), api_key="sk")
    with pytest.raises(ProviderHttpError, match=r"^TTS Error \(422\)"):
        await _client(handler).synthesize(spec)


@pytest.mark.asyncio
async def test_timeout_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out")

    with pytest.raises(TransportError, match="ReadTimeout"):
        await _client(handler).chat(_chat_spec(stream=False))


@pytest.mark.asyncio
async def test_list_models():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/v1/models"
        return httpx.Response(200, json={"object": "list", "data": [{"id": "a"}, {"id": "b"}]})

    assert await _client(handler).list_models(_BUILDER.models(api_key="sk")) == ["a", "b"]


@pytest.mark.asyncio
async def test_list_models_error_uses_generic_label():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden")

    with pytest.raises(ProviderHttpError, match=r"^API Error \(403\): forbidden$"):
        await _client(handler).list_models(_BUILDER.models(api_key="sk"))


def test_from_config_reads_timeouts():
    cfg = AppConfig(timeout_s=12.0, done_grace_s=0.5, enable_debug_logging=True)
    client = HttpProviderClient.from_config(cfg)
    assert client._timeout == 12.0
    assert client._done_grace == 0.5
    assert client._debug is True

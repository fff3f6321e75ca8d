"""Build provider calls (``ProviderCallSpec``) from operation requests.

One builder method per call family:

``chat``
    ``POST {base}/chat/completions`` with system + user messages.
``image``
    ``POST {base}/images/generations``; size label reduced to ``WxH``.
``transcription``
    ``POST {base}/audio/transcriptions`` as multipart upload.
``speech``
    ``POST {base}/audio/speech``; speed clamped to the API's range.
"""

from __future__ import annotations

import logging
import math
import re
from pathlib import Path
from typing import Any, Dict
from urllib.parse import urlsplit

from anywhere_ops.config import AppConfig
from anywhere_ops.config.constants import (
    CHAT_MAX_TOKENS,
    CHAT_TEMPERATURE,
    DEFAULT_AUDIO_MODEL,
    DEFAULT_IMAGE_MODEL,
    TTS_MAX_SPEED,
    TTS_MIN_SPEED,
)
from anywhere_ops.domain import (
    AudioFileNotFound,
    CallFamily,
    EmptyInput,
    MissingApiKey,
    OperationError,
    OperationRequest,
    ProviderCallSpec,
)

logger = logging.getLogger(__name__)

_VERSION_SUFFIX_RE = re.compile(r"/v\d+$")
_ENDPOINT_MARKERS = ("/chat/", "/images/", "/audio/", "/models")


def build_url(base_url: str, endpoint: str) -> str:
    """Join *base_url* and *endpoint*, inserting ``/v1`` when the base has no version.

    Hosted providers are usually configured as ``https://host/v1`` while many
    self-hosted servers are configured as bare ``http://host:port``; a base
    whose path already points into an endpoint is used as-is.
    """
    base = base_url.rstrip("/")
    has_version = bool(_VERSION_SUFFIX_RE.search(base))
    path = urlsplit(base).path
    has_endpoint = any(marker in path for marker in _ENDPOINT_MARKERS)
    if has_version or has_endpoint:
        return f"{base}{endpoint}"
    return f"{base}/v1{endpoint}"


def extract_dimensions(size_label: str) -> str:
    """``"512x768 (2:3 Portrait)"`` -> ``"512x768"``; labels without a space pass through."""
    head, _, _ = size_label.partition(" ")
    return head


def parse_speed(raw: str | None) -> float:
    try:
        speed = float(raw) if raw is not None else 1.0
    except ValueError:
        speed = 1.0
    if math.isnan(speed):
        speed = 1.0
    return min(max(speed, TTS_MIN_SPEED), TTS_MAX_SPEED)


def auth_headers(api_key: str) -> Dict[str, str]:
    if not api_key or not api_key.strip():
        raise MissingApiKey()
    return {"Authorization": f"Bearer {api_key.strip()}"}


class RequestBuilder:
    """Turns resolved prompts and request options into ``ProviderCallSpec`` objects."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    def url(self, endpoint: str) -> str:
        return build_url(self._config.api_base_url, endpoint)

    def chat(self, system_prompt: str, user_prompt: str, *, api_key: str, stream: bool) -> ProviderCallSpec:
        body: Dict[str, Any] = {
            "model": self._config.llm_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": CHAT_MAX_TOKENS,
            "temperature": CHAT_TEMPERATURE,
            "stream": stream,
        }
        return ProviderCallSpec(
            family=CallFamily.CHAT,
            method="POST",
            url=self.url("/chat/completions"),
            headers=auth_headers(api_key),
            json=body,
            stream=stream,
        )

    def image(self, request: OperationRequest, *, api_key: str) -> ProviderCallSpec:
        body: Dict[str, Any] = {
            "model": self._config.image_model or DEFAULT_IMAGE_MODEL,
            "prompt": request.prompt,
            "size": extract_dimensions(request.option("size", "512x512")),
            "quality": request.option("quality", "standard"),
            "style": request.option("style", "vivid"),
            "response_format": "url",
            "n": 1,
        }
        return ProviderCallSpec(
            family=CallFamily.IMAGE,
            method="POST",
            url=self.url("/images/generations"),
            headers=auth_headers(api_key),
            json=body,
        )

    def transcription(self, request: OperationRequest, *, api_key: str) -> ProviderCallSpec:
        path = request.audio_file_path
        if not path or not Path(path).is_file():
            raise AudioFileNotFound(path)
        headers = auth_headers(api_key)
        try:
            audio = Path(path).read_bytes()
        except OSError as e:
            raise OperationError(f"Failed to read audio file: {e}") from e

        data: Dict[str, str] = {
            "model": self._config.audio_model or DEFAULT_AUDIO_MODEL,
            "response_format": "text",
        }
        language = request.option("language", "auto").strip()
        if language and language != "auto":
            data["language"] = language

        logger.debug("Prepared transcription upload %s (%d bytes)", Path(path).name, len(audio))
        return ProviderCallSpec(
            family=CallFamily.TRANSCRIPTION,
            method="POST",
            url=self.url("/audio/transcriptions"),
            headers=headers,
            data=data,
            files={"file": (Path(path).name or "audio.mp3", audio, "audio/mpeg")},
        )

    def models(self, *, api_key: str) -> ProviderCallSpec:
        """``GET {base}/models``; used by settings screens to list and probe the backend."""
        return ProviderCallSpec(
            family=None,
            method="GET",
            url=self.url("/models"),
            headers=auth_headers(api_key),
        )

    def speech(self, request: OperationRequest, *, api_key: str) -> ProviderCallSpec:
        if not request.prompt.strip():
            raise EmptyInput("Text prompt is required for Text to Speech")
        audio_format = request.option("format", "mp3")
        body: Dict[str, Any] = {
            "model": request.option("model", self._config.tts_model),
            "input": request.prompt,
            "voice": request.option("voice", "alloy"),
            "response_format": audio_format,
            "speed": parse_speed(request.options.get("speed")),
            "language": request.option("language", "pt"),
        }
        return ProviderCallSpec(
            family=CallFamily.SPEECH,
            method="POST",
            url=self.url("/audio/speech"),
            headers=auth_headers(api_key),
            json=body,
            context={"audio_format": audio_format},
        )

"""Configuration schema. Defaults point at the OpenAI API; any OpenAI-compatible backend works via api_base_url."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_TTS_MODEL,
    PROVIDER_TIMEOUT_S,
    STREAM_DONE_GRACE_S,
)


class AppConfig(BaseModel):
    """Provider endpoint, credentials, model names and prompt overrides."""
    api_base_url: str = Field(
        DEFAULT_API_BASE_URL,
        description=(
            "e.g. https://api.openai.com/v1 or http://localhost:8080. "
            "A /v1 segment is inserted automatically when the URL has no version segment."
        ),
    )
    api_key: str = Field("", description="Bearer token sent with every provider call.")
    llm_model: str = Field("", description="Chat/text model used for every text operation and custom task.")
    image_model: str = Field("", description="Image generation model; empty means FLUX.1-schnell.")
    audio_model: str = Field("", description="Transcription model; empty means whisper-1.")
    tts_model: str = Field(DEFAULT_TTS_MODEL, description="Fallback text-to-speech model when the request has no 'model' option.")
    system_prompts: Dict[str, str] = Field(
        default_factory=dict,
        description=(
            "Per-operation system prompt overrides keyed by prompt key "
            "(e.g. 'TextRewrite', 'EmailReply'). Missing keys use the built-in prompt."
        ),
    )
    enable_debug_logging: bool = Field(
        False,
        description="Log provider URLs, models and response statuses at INFO level.",
    )
    timeout_s: float = Field(PROVIDER_TIMEOUT_S, description="Overall HTTP timeout for one provider call.")
    done_grace_s: float = Field(
        STREAM_DONE_GRACE_S,
        description="Seconds to keep reading after 'data: [DONE]' before closing the stream ourselves.",
    )
    custom_tasks_path: Optional[str] = Field(
        None,
        description="JSON file holding custom tasks. Defaults to custom_tasks.json in the platformdirs user data dir.",
    )
    media_dir: Optional[str] = Field(
        None,
        description="Directory for synthesized audio. Defaults to media/ in the platformdirs user data dir.",
    )

    def get_api_key(self) -> str:
        """Return the plaintext API key (empty when not configured)."""
        return self.api_key.strip()


DEFAULT_CONFIG = AppConfig()

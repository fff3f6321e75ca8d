"""Named constants for values that appear in multiple places or need explanation.

Each constant has a comment saying what it bounds, so future maintainers can
decide whether a change is safe without grepping for side-effects.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Prompt budget
# ---------------------------------------------------------------------------

# Hard ceiling on the estimated token count of a request prompt.  The desktop
# client applies the same limit before submitting; both layers must reject the
# same prompts.
MAX_ESTIMATED_TOKENS: int = 16_000

# Average tokens per whitespace-delimited word for English-like text.
TOKENS_PER_WORD: float = 1.33

# Safety margin on top of the per-word estimate (20 %).
TOKEN_CORRECTION_FACTOR: float = 1.20

# ---------------------------------------------------------------------------
# Chat generation parameters
# ---------------------------------------------------------------------------

CHAT_MAX_TOKENS: int = 4096
CHAT_TEMPERATURE: float = 0.6

# ---------------------------------------------------------------------------
# Provider defaults used when the configuration leaves a model name empty
# ---------------------------------------------------------------------------

DEFAULT_API_BASE_URL: str = "https://api.openai.com/v1"
DEFAULT_IMAGE_MODEL: str = "FLUX.1-schnell"
DEFAULT_AUDIO_MODEL: str = "whisper-1"
DEFAULT_TTS_MODEL: str = "tts-1-hd"

# Text-to-speech speed is clamped to this range (OpenAI audio/speech limits).
TTS_MIN_SPEED: float = 0.25
TTS_MAX_SPEED: float = 2.0

# ---------------------------------------------------------------------------
# Timeouts
# ---------------------------------------------------------------------------

# Upper bound for a whole provider call (connect + body).  Image generation
# and long streamed answers on slow self-hosted backends can take minutes.
PROVIDER_TIMEOUT_S: float = 300.0

# How long the stream reader waits for the peer to close the connection after
# it has sent ``data: [DONE]``.  Some self-hosted servers keep the socket open;
# without this bound the operation would hang until PROVIDER_TIMEOUT_S.
STREAM_DONE_GRACE_S: float = 5.0

# Short timeout for model listing / connection tests from settings screens.
MODEL_LIST_TIMEOUT_S: float = 15.0

# ---------------------------------------------------------------------------
# Local storage
# ---------------------------------------------------------------------------

# platformdirs application name; the user data dir holds custom_tasks.json and
# media/ when the configuration does not name explicit paths.
DATA_DIR_APP_NAME: str = "anywhere-ops"

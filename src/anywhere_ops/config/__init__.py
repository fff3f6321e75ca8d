"""Configuration: schema, loading from env/file, and shared constants."""

from .schema import DEFAULT_CONFIG, AppConfig
from .loader import load_config
from .constants import (
    MAX_ESTIMATED_TOKENS,
    PROVIDER_TIMEOUT_S,
    STREAM_DONE_GRACE_S,
    MODEL_LIST_TIMEOUT_S,
)

get_config = load_config  # alias

__all__ = [
    "DEFAULT_CONFIG", "AppConfig",
    "load_config", "get_config",
    "MAX_ESTIMATED_TOKENS", "PROVIDER_TIMEOUT_S",
    "STREAM_DONE_GRACE_S", "MODEL_LIST_TIMEOUT_S",
]

"""Load config from ANYWHERE_CONFIG_PATH or return defaults.

``load_config()`` is memoised with ``functools.lru_cache`` so the file is read
and parsed at most once per process.  Call ``load_config.cache_clear()`` to
force a re-read (useful in tests and when ``ANYWHERE_CONFIG_PATH`` changes at
runtime).
"""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .schema import AppConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class _Env(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ANYWHERE_", extra="ignore")
    config_path: Optional[str] = None
    api_key: Optional[str] = None


_env: Optional[_Env] = None


def _get_env() -> _Env:
    global _env
    if _env is None:
        _env = _Env()
    return _env


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    key = _get_env().api_key
    if key and key.strip():
        return config.model_copy(update={"api_key": key.strip()})
    return config


@functools.lru_cache(maxsize=1)
def load_config() -> AppConfig:
    """Load config from ANYWHERE_CONFIG_PATH if set and valid; else return DEFAULT_CONFIG.

    ``ANYWHERE_API_KEY`` overrides the key stored in the file.  The result is
    cached for the lifetime of the process.
    """
    path = _get_env().config_path
    if not path or not path.strip():
        return _apply_env_overrides(DEFAULT_CONFIG)
    p = Path(path).expanduser().resolve()
    if not p.is_file():
        logger.debug("Config file %s not found; using defaults", p)
        return _apply_env_overrides(DEFAULT_CONFIG)
    raw = p.read_text(encoding="utf-8")
    data = json.loads(raw) if raw.strip() else {}
    # Accept the desktop app's camelCase keys
    for camel, snake in (
        ("apiBaseUrl", "api_base_url"),
        ("apiKey", "api_key"),
        ("llmModel", "llm_model"),
        ("imageModel", "image_model"),
        ("audioModel", "audio_model"),
        ("ttsModel", "tts_model"),
        ("systemPrompts", "system_prompts"),
        ("enableDebugLogging", "enable_debug_logging"),
    ):
        if camel in data and snake not in data:
            data[snake] = data.pop(camel)
    return _apply_env_overrides(AppConfig.model_validate(data))

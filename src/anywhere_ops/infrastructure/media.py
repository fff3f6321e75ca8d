"""Local media folder for synthesized audio."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from anywhere_ops.config import AppConfig
from anywhere_ops.infrastructure.data_dir import default_data_dir

logger = logging.getLogger(__name__)


class DirectoryMediaStore:
    """Writes audio as ``audio_<UTC timestamp>_<8 hex>.<format>`` and returns the absolute path."""

    def __init__(self, media_dir: str | Path) -> None:
        self.media_dir = Path(media_dir).expanduser()

    @classmethod
    def from_config(cls, config: AppConfig) -> "DirectoryMediaStore":
        return cls(config.media_dir or default_data_dir() / "media")

    def save_audio(self, data: bytes, audio_format: str) -> str:
        self.media_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        path = self.media_dir / f"audio_{timestamp}_{uuid.uuid4().hex[:8]}.{audio_format}"
        path.write_bytes(data)
        logger.debug("Wrote %d bytes to %s", len(data), path)
        return str(path.resolve())

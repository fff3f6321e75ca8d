"""OS-appropriate user data directory.

- Linux:   ``~/.local/share/anywhere-ops``
- macOS:   ``~/Library/Application Support/anywhere-ops``
- Windows: ``%LOCALAPPDATA%\\anywhere-ops``
"""

from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_path

from anywhere_ops.config.constants import DATA_DIR_APP_NAME


def default_data_dir() -> Path:
    return Path(user_data_path(DATA_DIR_APP_NAME))

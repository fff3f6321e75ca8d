"""Pytest fixtures and helpers for anywhere-ops tests."""
from __future__ import annotations

import json
from typing import Iterable, List

import pytest


def _sse_body(deltas: Iterable[str], done: bool = True) -> bytes:
    lines: List[str] = []
    for delta in deltas:
        payload = {"choices": [{"index": 0, "delta": {"content": delta}}]}
        lines.append("data: " + json.dumps(payload, ensure_ascii=False) + "\n\n")
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


@pytest.fixture(autouse=True)
def _reset_config_cache():
    """Clear the load_config LRU cache and reset _env before (and after) every test.

    Each test gets a fresh config load, so monkeypatching ANYWHERE_CONFIG_PATH
    works without tests bleeding into each other.
    """
    from anywhere_ops.config import loader as config_loader
    config_loader.load_config.cache_clear()
    config_loader._env = None
    yield
    config_loader.load_config.cache_clear()
    config_loader._env = None


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Write a config JSON under tmp_path and point ANYWHERE_CONFIG_PATH at it.

    Custom tasks and media go under tmp_path too, so nothing touches ~/.local.
    Returns the path; tests may rewrite it before the first load_config().
    """
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "apiBaseUrl": "http://llm.test",
                "apiKey": "sk-test",
                "llmModel": "test-model",
                "custom_tasks_path": str(tmp_path / "custom_tasks.json"),
                "media_dir": str(tmp_path / "media"),
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("ANYWHERE_CONFIG_PATH", str(path))
    monkeypatch.delenv("ANYWHERE_API_KEY", raising=False)
    return path


@pytest.fixture
def sse_body():
    """Build an OpenAI-style ``text/event-stream`` body: ``sse_body(["Hel", "lo"], done=True)``."""
    return _sse_body

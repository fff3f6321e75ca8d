"""Tests for CLI commands using CliRunner (no live backend required)."""
from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from anywhere_ops.application.router import OperationRouter, OperationSession
from anywhere_ops.config import AppConfig
from anywhere_ops.domain import (
    OperationResult,
    ProviderHttpError,
    StreamEvent,
    StreamEventKind,
    TransportError,
)
from anywhere_ops.interfaces.cli import app

runner = CliRunner()

_CONFIG = AppConfig(api_base_url="http://llm.test", api_key="sk", llm_model="m")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _session(provider: MagicMock) -> OperationSession:
    return OperationSession(OperationRouter(_CONFIG, provider))


def _streaming_provider(deltas, final: OperationResult) -> MagicMock:
    async def _stream(spec, *, on_event=None, cancel=None):
        for delta in deltas:
            on_event(StreamEvent(StreamEventKind.CHUNK, delta))
        on_event(StreamEvent(StreamEventKind.DONE))
        return final

    provider = MagicMock()
    provider.stream_chat = AsyncMock(side_effect=_stream)
    provider.chat = AsyncMock(return_value="Blocking answer")
    provider.generate_image = AsyncMock(return_value="https://img.test/x.png")
    provider.list_models = AsyncMock(return_value=["model-a", "model-b"])
    return provider


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

def test_run_streams_deltas(config_file):
    provider = _streaming_provider(["Hel", "lo"], OperationResult.text("Hello"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["run", "generalChat", "hi"])
    assert result.exit_code == 0, result.output
    assert "Hello" in result.output
    assert "cleaned" not in result.output


def test_run_prints_cleaned_text_when_post_processing_changes_it(config_file):
    provider = _streaming_provider(["<think>x</think>", "Hi"], OperationResult.text("Hi"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["run", "generalChat", "hi"])
    assert result.exit_code == 0
    assert "cleaned" in result.output


def test_run_no_stream_with_options(config_file):
    provider = _streaming_provider([], OperationResult.text("unused"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(
            app,
            ["run", "textTranslation", "Translate", "-s", "Olá", "-o", "language=German", "--no-stream"],
        )
    assert result.exit_code == 0, result.output
    assert "Blocking answer" in result.output
    spec = provider.chat.await_args.args[0]
    assert "German" in spec.json["messages"][0]["content"]
    provider.stream_chat.assert_not_awaited()


def test_run_reads_prompt_from_stdin(config_file):
    provider = _streaming_provider([], OperationResult.text("unused"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["run", "generalChat", "-", "--no-stream"], input="from stdin\n")
    assert result.exit_code == 0
    assert provider.chat.await_args.args[0].json["messages"][1]["content"] == "from stdin\n"


def test_run_image_prints_url(config_file):
    provider = _streaming_provider([], OperationResult.text("unused"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["run", "imageGeneration", "a fox"])
    assert result.exit_code == 0
    assert "https://img.test/x.png" in result.output


def test_run_failure_exits_1(config_file):
    provider = _streaming_provider([], OperationResult.text("unused"))
    provider.stream_chat = AsyncMock(side_effect=ProviderHttpError(500, "boom"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["run", "generalChat", "hi"])
    assert result.exit_code == 1
    assert "API Error (500): boom" in result.output


def test_run_unknown_operation_exits_1(config_file):
    provider = _streaming_provider([], OperationResult.text("unused"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["run", "notAThing", "hi"])
    assert result.exit_code == 1
    assert "Unknown operation" in result.output


def test_run_cancelled_exits_130(config_file):
    provider = _streaming_provider(["partial"], OperationResult.cancellation())
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["run", "generalChat", "hi"])
    assert result.exit_code == 130
    assert "Cancelled" in result.output


def test_run_bad_option_format(config_file):
    result = runner.invoke(app, ["run", "generalChat", "hi", "-o", "novalue"])
    assert result.exit_code != 0


# ---------------------------------------------------------------------------
# operations / models
# ---------------------------------------------------------------------------

def test_operations_lists_builtins_and_custom_tasks(config_file, tmp_path):
    (tmp_path / "custom_tasks.json").write_text(
        json.dumps([{"id": "t-1", "name": "Haiku", "systemPrompt": "Haiku please"}]),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["operations"])
    assert result.exit_code == 0, result.output
    assert "textRewrite" in result.output
    assert "imageGeneration" in result.output
    assert "Haiku" in result.output


def test_models_lists_ids(config_file):
    provider = _streaming_provider([], OperationResult.text("unused"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["models"])
    assert result.exit_code == 0
    assert "model-a" in result.output and "model-b" in result.output


def test_models_error_exits_1(config_file):
    provider = _streaming_provider([], OperationResult.text("unused"))
    provider.list_models = AsyncMock(side_effect=TransportError("Request failed: ConnectError"))
    with patch("anywhere_ops.interfaces.cli.build_session", return_value=_session(provider)):
        result = runner.invoke(app, ["models"])
    assert result.exit_code == 1
    assert "ConnectError" in result.output


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------

def test_serve_runs_uvicorn():
    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(app, ["serve", "--port", "9999"])
    assert result.exit_code == 0
    mock_run.assert_called_once_with(
        "anywhere_ops.interfaces.http_api:app", host="127.0.0.1", port=9999, reload=False
    )


# ---------------------------------------------------------------------------
# tasks
# ---------------------------------------------------------------------------

def test_tasks_add_list_delete(config_file, tmp_path):
    result = runner.invoke(
        app, ["tasks", "add", "Pirate", "--prompt", "Talk like a {role}", "-o", "role=Role"]
    )
    assert result.exit_code == 0, result.output
    saved = json.loads((tmp_path / "custom_tasks.json").read_text(encoding="utf-8"))
    task_id = saved[0]["id"]
    assert saved[0]["options"][0]["key"] == "role"

    result = runner.invoke(app, ["tasks", "list"])
    assert result.exit_code == 0
    assert "Pirate" in result.output

    result = runner.invoke(app, ["tasks", "delete", task_id])
    assert result.exit_code == 0
    assert json.loads((tmp_path / "custom_tasks.json").read_text(encoding="utf-8")) == []


def test_tasks_add_reports_missing_and_extra(config_file):
    result = runner.invoke(app, ["tasks", "add", "Bad", "--prompt", "About {topic}", "-o", "role=Role"])
    assert result.exit_code == 1
    assert "role" in result.output
    assert "topic" in result.output


def test_tasks_delete_unknown_exits_1(config_file):
    result = runner.invoke(app, ["tasks", "delete", "missing"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_tasks_list_empty(config_file):
    result = runner.invoke(app, ["tasks", "list"])
    assert result.exit_code == 0
    assert "No custom tasks" in result.output


def test_tasks_export_and_import(config_file, tmp_path):
    runner.invoke(app, ["tasks", "add", "Pirate", "--prompt", "Talk like a {role}", "-o", "role=Role"])
    out = tmp_path / "export.json"
    result = runner.invoke(app, ["tasks", "export", "--output", str(out)])
    assert result.exit_code == 0
    assert json.loads(out.read_text(encoding="utf-8"))[0]["name"] == "Pirate"

    result = runner.invoke(app, ["tasks", "import", str(out)])
    assert result.exit_code == 0
    assert "Imported 1 task(s)" in result.output
    # Same name merged, not duplicated
    assert len(json.loads((tmp_path / "custom_tasks.json").read_text(encoding="utf-8"))) == 1


def test_tasks_validate(config_file, tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text(
        json.dumps([
            {"name": "Good", "systemPrompt": "Hi {who}", "options": [{"key": "who", "name": "Who", "type": "text"}]},
            {"name": "Bad", "systemPrompt": "Hi {who}"},
        ]),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["tasks", "validate", str(path)])
    assert result.exit_code == 1
    assert "ok" in result.output
    assert "Bad" in result.output
    assert "who" in result.output


def test_tasks_validate_unreadable_file(config_file, tmp_path):
    result = runner.invoke(app, ["tasks", "validate", str(tmp_path / "missing.json")])
    assert result.exit_code == 1

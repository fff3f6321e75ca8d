"""CLI: Typer app wired to the operation router."""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Dict, List, Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from anywhere_ops.application.prompts import validate_custom_task
from anywhere_ops.application.router import OperationSession
from anywhere_ops.config import load_config
from anywhere_ops.domain import (
    CustomTask,
    OperationError,
    OperationOption,
    OperationRequest,
    OperationResult,
    OptionType,
    ResultKind,
    StreamEvent,
    StreamEventKind,
    ValidationError,
    default_operations,
)
from anywhere_ops.infrastructure import JsonCustomTaskStore
from anywhere_ops.interfaces.wiring import build_session

app = typer.Typer(help="anywhere-ops: run text, image and audio operations against an OpenAI-compatible backend.")

# Conventional exit status for a run stopped with Ctrl-C
EXIT_CANCELLED = 130


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _parse_pairs(pairs: List[str], what: str) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint=what)
        parsed[key.strip()] = value
    return parsed


async def _run_interruptible(
    session: OperationSession,
    request: OperationRequest,
    stream: bool,
    on_event,
) -> OperationResult:
    """Run one operation; SIGINT sets the session's cancel signal instead of killing the loop."""
    loop = asyncio.get_running_loop()
    installed = False
    if stream:
        try:
            loop.add_signal_handler(signal.SIGINT, session.cancel)
            installed = True
        except (NotImplementedError, RuntimeError):
            # Windows event loops and non-main threads: Ctrl-C aborts instead
            pass
    try:
        return await session.run(request, stream=stream, on_event=on_event)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


@app.command()
def run(
    operation: str = typer.Argument(..., help="Operation id (e.g. textRewrite, imageGeneration) or custom task id."),
    prompt: str = typer.Argument("", help="Prompt text. Use '-' to read it from stdin."),
    selected_text: Optional[str] = typer.Option(None, "--selected-text", "-s", help="Text the prompt refers to."),
    option: List[str] = typer.Option([], "--option", "-o", help="Operation option as KEY=VALUE (repeatable)."),
    audio_file: Optional[Path] = typer.Option(None, "--audio-file", "-a", help="Audio file for speechToText."),
    stream: bool = typer.Option(True, "--stream/--no-stream", help="Stream text operations as they are generated."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose (DEBUG) logging to stderr."),
) -> None:
    """Run one operation and print its result. Ctrl-C cancels a streaming run."""
    _setup_logging(verbose)
    if prompt == "-":
        prompt = sys.stdin.read()
    config = load_config()
    session = build_session(config)
    request = OperationRequest(
        operation_type=operation,
        prompt=prompt,
        selected_text=selected_text,
        options=_parse_pairs(option, "--option"),
        audio_file_path=str(audio_file) if audio_file else None,
    )

    streamed: List[str] = []

    def _on_event(event: StreamEvent) -> None:
        if event.kind is StreamEventKind.CHUNK:
            streamed.append(event.content)
            typer.echo(event.content, nl=False)

    result = asyncio.run(_run_interruptible(session, request, stream, _on_event))
    if streamed:
        typer.echo()

    if result.cancelled:
        rprint("[yellow]Cancelled.[/yellow]")
        sys.exit(EXIT_CANCELLED)
    if not result.success:
        rprint(f"[red]{result.error}[/red]")
        sys.exit(1)

    if result.kind is ResultKind.IMAGE:
        typer.echo(result.image_url)
    elif result.kind is ResultKind.AUDIO:
        typer.echo(result.audio_path)
    elif not streamed:
        typer.echo(result.content)
    elif result.content != "".join(streamed).strip():
        # Post-processing changed the text (think blocks, math delimiters)
        rprint("[dim]--- cleaned ---[/dim]")
        typer.echo(result.content)


@app.command()
def operations(
    show_prompts: bool = typer.Option(False, "--prompts", help="Also print each system prompt."),
) -> None:
    """List built-in operations and custom tasks."""
    config = load_config()
    table = Table(title="Operations", show_header=True, header_style="bold")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Family")
    table.add_column("Streams")
    table.add_column("Options", style="dim")
    for op in default_operations(config.system_prompts):
        table.add_row(
            op.operation_type.value,
            op.name,
            op.family.value,
            "yes" if op.family.supports_streaming else "no",
            ", ".join(o.key for o in op.options),
        )
    for task in JsonCustomTaskStore.from_config(config).list():
        table.add_row(task.id, task.name, "chat (custom)", "yes", ", ".join(task.option_keys))
    Console().print(table)

    if show_prompts:
        for op in default_operations(config.system_prompts):
            rprint(f"\n[bold]{op.operation_type.value}[/bold]\n{op.system_prompt}")


@app.command()
def models(verbose: bool = typer.Option(False, "--verbose", "-v")) -> None:
    """List the models offered by the configured backend."""
    _setup_logging(verbose)
    config = load_config()
    session = build_session(config)
    try:
        ids = asyncio.run(session.router.list_models())
    except OperationError as e:
        rprint(f"[red]{e}[/red]")
        sys.exit(1)
    if not ids:
        rprint(f"[dim]No models reported by {config.api_base_url}[/dim]")
        return
    for model_id in ids:
        typer.echo(model_id)


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8787) -> None:
    """Run the HTTP API (FastAPI + uvicorn)."""
    import uvicorn
    uvicorn.run("anywhere_ops.interfaces.http_api:app", host=host, port=port, reload=False)


# ---------------------------------------------------------------------------
# tasks subcommands
# ---------------------------------------------------------------------------

tasks_app = typer.Typer(help="Manage custom tasks.")
app.add_typer(tasks_app, name="tasks")


def _store() -> JsonCustomTaskStore:
    return JsonCustomTaskStore.from_config(load_config())


def _report_validation(e: ValidationError) -> None:
    rprint(f"[red]{e}[/red]")
    if e.missing:
        rprint(f"  Missing placeholders: {', '.join(e.missing)}")
    if e.extra:
        rprint(f"  Unknown placeholders: {', '.join(e.extra)}")


def _read_tasks_file(path: Path) -> List[CustomTask]:
    """A file holds either one task object or an exported array of tasks."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        items = data if isinstance(data, list) else [data]
        return [CustomTask.model_validate(item) for item in items]
    except (OSError, ValueError, PydanticValidationError) as e:
        rprint(f"[red]Cannot read {path}: {e}[/red]")
        sys.exit(1)


@tasks_app.command("list")
def tasks_list() -> None:
    """List custom tasks."""
    store = _store()
    tasks = store.list()
    if not tasks:
        rprint(f"[dim]No custom tasks in {store.path}[/dim]")
        return
    table = Table(title=f"Custom tasks ({store.path})", show_header=True, header_style="bold")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Options")
    table.add_column("Updated", style="dim")
    for task in tasks:
        table.add_row(task.id, task.name, ", ".join(task.option_keys), task.updated_at)
    Console().print(table)


@tasks_app.command("add")
def tasks_add(
    name: str = typer.Argument(..., help="Task name."),
    prompt: str = typer.Option(..., "--prompt", "-p", help="System prompt with {placeholders}."),
    description: str = typer.Option("", "--description", "-d"),
    option: List[str] = typer.Option(
        [], "--option", "-o", help="Text option as KEY=LABEL; KEY must appear as {KEY} in the prompt (repeatable)."
    ),
) -> None:
    """Create a custom task."""
    options = [
        OperationOption(key=key, name=label or key, option_type=OptionType.TEXT)
        for key, label in _parse_pairs(option, "--option").items()
    ]
    task = CustomTask(name=name, description=description, system_prompt=prompt, options=options)
    try:
        created = _store().create(task)
    except ValidationError as e:
        _report_validation(e)
        sys.exit(1)
    rprint(f"[green]Created[/green] {created.name} [dim]({created.id})[/dim]")


@tasks_app.command("delete")
def tasks_delete(task_id: str = typer.Argument(..., help="Task id.")) -> None:
    """Delete a custom task."""
    try:
        _store().delete(task_id)
    except OperationError as e:
        rprint(f"[red]{e}[/red]")
        sys.exit(1)
    rprint(f"[green]Deleted[/green] {task_id}")


@tasks_app.command("export")
def tasks_export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout."),
) -> None:
    """Export all custom tasks as JSON."""
    text = _store().export()
    if output is None:
        typer.echo(text)
        return
    output.write_text(text, encoding="utf-8")
    rprint(f"[green]Exported[/green] to {output}")


@tasks_app.command("import")
def tasks_import(path: Path = typer.Argument(..., help="JSON file produced by 'tasks export'.")) -> None:
    """Import custom tasks; tasks with an existing name replace it."""
    try:
        count = _store().import_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        rprint(f"[red]Cannot read {path}: {e}[/red]")
        sys.exit(1)
    except OperationError as e:
        rprint(f"[red]{e}[/red]")
        sys.exit(1)
    rprint(f"[green]Imported {count} task(s)[/green]")


@tasks_app.command("validate")
def tasks_validate(path: Path = typer.Argument(..., help="JSON file with one task or an array of tasks.")) -> None:
    """Check that every task's placeholders match its options."""
    failures = 0
    for task in _read_tasks_file(path):
        try:
            validate_custom_task(task)
        except ValidationError as e:
            failures += 1
            rprint(f"[bold]{task.name or '(unnamed)'}[/bold]")
            _report_validation(e)
        else:
            rprint(f"[green]ok[/green] {task.name}")
    if failures:
        sys.exit(1)

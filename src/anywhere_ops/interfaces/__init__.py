"""Host interfaces: Typer CLI and FastAPI HTTP API."""

"""Domain and application errors.

Every error is terminal for the operation that raised it; nothing here is
retried.  The router turns them into failed ``OperationResult`` objects with
``str(error)`` as the user-visible detail.
"""

from __future__ import annotations

from typing import Iterable, List


class OperationError(Exception):
    """Base for operation errors."""
    pass


class UnknownOperation(OperationError):
    """Operation id is neither a built-in operation nor a known custom task."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Unknown operation type: {identifier!r}")


class ValidationError(OperationError):
    """Custom task definition is inconsistent (raised at authoring time).

    ``missing`` lists option keys without a ``{placeholder}`` in the prompt;
    ``extra`` lists placeholders without a declared option.
    """

    def __init__(self, message: str, missing: Iterable[str] = (), extra: Iterable[str] = ()) -> None:
        self.missing: List[str] = list(missing)
        self.extra: List[str] = list(extra)
        super().__init__(message)


class TaskNotFound(OperationError):
    """Custom task store has no task with the given id."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Custom task with id '{task_id}' not found")


class PromptTooLong(OperationError):
    def __init__(self, estimated: int, limit: int) -> None:
        self.estimated = estimated
        self.limit = limit
        super().__init__(
            f"Prompt too long (~{estimated} estimated tokens). Maximum allowed: {limit} tokens."
        )


class MissingApiKey(OperationError):
    def __init__(self) -> None:
        super().__init__("API key is empty. Please configure your API key in settings.")


class AudioFileNotFound(OperationError):
    def __init__(self, path: str | None) -> None:
        self.path = path
        if path:
            super().__init__(f"Audio file not found: {path}")
        else:
            super().__init__("Audio file not found or not specified")


class EmptyInput(OperationError):
    """Text-to-speech was asked to speak blank text."""
    pass


class ProviderHttpError(OperationError):
    """Provider answered with a non-2xx status; body is kept verbatim."""

    def __init__(self, status: int, body: str, label: str = "API Error") -> None:
        self.status = status
        self.body = body
        self.label = label
        super().__init__(f"{label} ({status}): {body}")


class ProviderParseError(OperationError):
    """Provider answered 2xx but the body does not have the expected shape."""
    pass


class TransportError(OperationError):
    """Connect/read/timeout failure below HTTP (wraps ``httpx.HTTPError``)."""
    pass

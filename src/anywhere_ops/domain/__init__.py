"""Domain layer: entities, value objects, operation catalog and errors. No I/O."""

from .models import (
    BuiltIn,
    BuiltinOperation,
    CallFamily,
    CancelSignal,
    Custom,
    OperationKind,
    OperationRequest,
    OperationResult,
    ProviderCallSpec,
    ResultKind,
    ResultStatus,
    StreamEvent,
    StreamEventKind,
    StreamState,
)
from .operations import OperationDefinition, OperationOption, OptionType, default_operations, family_for
from .tasks import CustomTask
from .errors import (
    AudioFileNotFound,
    EmptyInput,
    MissingApiKey,
    OperationError,
    PromptTooLong,
    ProviderHttpError,
    ProviderParseError,
    TaskNotFound,
    TransportError,
    UnknownOperation,
    ValidationError,
)

__all__ = [
    "BuiltIn",
    "BuiltinOperation",
    "CallFamily",
    "CancelSignal",
    "Custom",
    "OperationKind",
    "OperationRequest",
    "OperationResult",
    "ProviderCallSpec",
    "ResultKind",
    "ResultStatus",
    "StreamEvent",
    "StreamEventKind",
    "StreamState",
    "OperationDefinition",
    "OperationOption",
    "OptionType",
    "default_operations",
    "family_for",
    "CustomTask",
    "AudioFileNotFound",
    "EmptyInput",
    "MissingApiKey",
    "OperationError",
    "PromptTooLong",
    "ProviderHttpError",
    "ProviderParseError",
    "TaskNotFound",
    "TransportError",
    "UnknownOperation",
    "ValidationError",
]

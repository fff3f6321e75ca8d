"""Infrastructure adapters: provider HTTP client, custom task file, media folder."""

from .custom_tasks import JsonCustomTaskStore
from .media import DirectoryMediaStore
from .provider import HttpProviderClient

__all__ = ["JsonCustomTaskStore", "DirectoryMediaStore", "HttpProviderClient"]

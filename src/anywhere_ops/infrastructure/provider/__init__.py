"""OpenAI-compatible provider adapter: HTTP client and SSE parser."""

from .client import HttpProviderClient
from .sse import DATA_PREFIX, DONE_SENTINEL, SSEChatParser, extract_delta

__all__ = ["HttpProviderClient", "SSEChatParser", "extract_delta", "DATA_PREFIX", "DONE_SENTINEL"]

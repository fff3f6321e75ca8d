"""Compose the router from configuration; shared by the CLI and the HTTP API."""

from __future__ import annotations

from typing import Optional

import httpx

from anywhere_ops.application.router import OperationRouter, OperationSession
from anywhere_ops.config import AppConfig
from anywhere_ops.infrastructure import DirectoryMediaStore, HttpProviderClient, JsonCustomTaskStore


def build_router(
    config: AppConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> OperationRouter:
    return OperationRouter(
        config,
        HttpProviderClient.from_config(config, transport=transport),
        custom_tasks=JsonCustomTaskStore.from_config(config),
        media_store=DirectoryMediaStore.from_config(config),
    )


def build_session(
    config: AppConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> OperationSession:
    return OperationSession(build_router(config, transport=transport))

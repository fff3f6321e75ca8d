"""Custom task model: a user-authored operation with its own prompt template and options."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .operations import OperationOption


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CustomTask(BaseModel):
    """Serialized with camelCase keys (``systemPrompt``, ``createdAt``...) like the desktop app's file."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    system_prompt: str
    options: List[OperationOption] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @property
    def option_keys(self) -> List[str]:
        return [o.key for o in self.options]

"""Prompt template resolution, user prompt assembly and custom task validation."""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional

from anywhere_ops.application.ports import CustomTaskStore
from anywhere_ops.domain import (
    BuiltIn,
    CustomTask,
    OperationKind,
    UnknownOperation,
    ValidationError,
    default_operations,
)

PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def substitute(template: str, options: Mapping[str, str]) -> str:
    """Replace ``{key}`` for every supplied option; unknown placeholders stay verbatim."""
    result = template
    for key, value in options.items():
        result = result.replace("{" + key + "}", value)
    return result


def build_user_prompt(prompt: str, selected_text: Optional[str]) -> str:
    if selected_text:
        return f"{prompt}\n\nText to process:\n{selected_text}"
    return prompt


def extract_placeholders(template: str) -> List[str]:
    """Placeholder names in order of first appearance (duplicates removed)."""
    seen: List[str] = []
    for name in PLACEHOLDER_RE.findall(template):
        if name not in seen:
            seen.append(name)
    return seen


def validate_custom_task(task: CustomTask) -> None:
    """Raise ``ValidationError`` unless *task*'s placeholders match its option keys exactly.

    Both mismatch directions are collected before raising so the author sees
    every missing and every extra key in one message.
    """
    if not task.name.strip():
        raise ValidationError("Task name cannot be empty")
    if not task.system_prompt.strip():
        raise ValidationError("System prompt cannot be empty")

    placeholders = extract_placeholders(task.system_prompt)
    option_keys = task.option_keys
    missing = [k for k in option_keys if k not in placeholders]
    extra = [p for p in placeholders if p not in option_keys]
    if not missing and not extra:
        return

    problems: List[str] = []
    if missing:
        problems.append(
            "System prompt is missing placeholders for options: "
            + ", ".join(missing)
            + ". Add " + ", ".join("{" + k + "}" for k in missing) + " to your prompt."
        )
    if extra:
        problems.append(
            "System prompt has placeholders without matching options: "
            + ", ".join(extra)
            + ". Create options for these or remove them from the prompt."
        )
    raise ValidationError(" ".join(problems), missing=missing, extra=extra)


class PromptResolver:
    """Resolve an operation to its system prompt.

    Built-in templates (with configured overrides) take precedence over custom
    tasks; the custom task store is only consulted for ids that are not
    built-ins.
    """

    def __init__(
        self,
        custom_tasks: Optional[CustomTaskStore] = None,
        overrides: Optional[Dict[str, str]] = None,
    ) -> None:
        self._custom_tasks = custom_tasks
        self._builtin_templates = {
            op.operation_type: op.system_prompt for op in default_operations(overrides)
        }

    def template_for(self, kind: OperationKind) -> str:
        if isinstance(kind, BuiltIn):
            return self._builtin_templates[kind.operation]
        task = self._custom_tasks.get(kind.task_id) if self._custom_tasks is not None else None
        if task is None:
            raise UnknownOperation(kind.task_id)
        return task.system_prompt

    def resolve(self, kind: OperationKind, options: Mapping[str, str]) -> str:
        return substitute(self.template_for(kind), options)

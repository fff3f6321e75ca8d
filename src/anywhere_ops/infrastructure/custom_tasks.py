"""JSON-file custom task store.

All tasks live in one pretty-printed JSON array (camelCase keys).  Every call
re-reads the file, so edits made by another process (the desktop app, a second
CLI) are picked up without a restart.  Single-writer usage is assumed.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from anywhere_ops.application.prompts import validate_custom_task
from anywhere_ops.config import AppConfig
from anywhere_ops.domain import CustomTask, OperationError, TaskNotFound, ValidationError
from anywhere_ops.domain.tasks import utc_now_iso
from anywhere_ops.infrastructure.data_dir import default_data_dir

logger = logging.getLogger(__name__)

_TASK_LIST = TypeAdapter(List[CustomTask])


def default_tasks_path(config: AppConfig) -> Path:
    if config.custom_tasks_path:
        return Path(config.custom_tasks_path).expanduser()
    return default_data_dir() / "custom_tasks.json"


def _dump(tasks: List[CustomTask]) -> str:
    return json.dumps(
        [t.model_dump(by_alias=True, mode="json") for t in tasks],
        indent=2,
        ensure_ascii=False,
    )


class JsonCustomTaskStore:
    """Custom task CRUD backed by a JSON file; satisfies the ``CustomTaskStore`` port."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @classmethod
    def from_config(cls, config: AppConfig) -> "JsonCustomTaskStore":
        return cls(default_tasks_path(config))

    def _load(self) -> List[CustomTask]:
        if not self.path.is_file():
            return []
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return []
        try:
            return _TASK_LIST.validate_json(raw)
        except PydanticValidationError as e:
            raise OperationError(f"Failed to parse custom tasks file {self.path}: {e}") from e

    def _save(self, tasks: List[CustomTask]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(_dump(tasks), encoding="utf-8")
        logger.debug("Saved %d custom task(s) to %s", len(tasks), self.path)

    def list(self) -> List[CustomTask]:
        return self._load()

    def get(self, task_id: str) -> Optional[CustomTask]:
        return next((t for t in self._load() if t.id == task_id), None)

    def create(self, task: CustomTask) -> CustomTask:
        validate_custom_task(task)
        tasks = self._load()
        tasks.append(task)
        self._save(tasks)
        logger.info("Created custom task %s (%s)", task.id, task.name)
        return task

    def update(self, task_id: str, task: CustomTask) -> CustomTask:
        """Replace the task with *task_id*; its id and creation time are kept."""
        validate_custom_task(task)
        tasks = self._load()
        for i, existing in enumerate(tasks):
            if existing.id == task_id:
                updated = task.model_copy(
                    update={"id": task_id, "created_at": existing.created_at, "updated_at": utc_now_iso()}
                )
                tasks[i] = updated
                self._save(tasks)
                return updated
        raise TaskNotFound(task_id)

    def delete(self, task_id: str) -> None:
        tasks = self._load()
        remaining = [t for t in tasks if t.id != task_id]
        if len(remaining) == len(tasks):
            raise TaskNotFound(task_id)
        self._save(remaining)
        logger.info("Deleted custom task %s", task_id)

    def export(self) -> str:
        return _dump(self._load())

    def import_json(self, text: str) -> int:
        """Merge tasks from an exported JSON array and return how many were imported.

        A task whose name matches an existing one replaces it (keeping the
        existing id and creation time); other tasks are added with a fresh id.
        Invalid tasks are skipped.
        """
        try:
            imported = _TASK_LIST.validate_json(text)
        except PydanticValidationError as e:
            raise ValidationError(f"Failed to parse import data: {e}") from e

        existing = self._load()
        count = 0
        for task in imported:
            try:
                validate_custom_task(task)
            except ValidationError as e:
                logger.warning("Skipping invalid task %r: %s", task.name, e)
                continue

            now = utc_now_iso()
            match = next((i for i, t in enumerate(existing) if t.name == task.name), None)
            if match is not None:
                current = existing[match]
                existing[match] = task.model_copy(
                    update={"id": current.id, "created_at": current.created_at, "updated_at": now}
                )
            else:
                existing.append(
                    task.model_copy(update={"id": str(uuid.uuid4()), "created_at": now, "updated_at": now})
                )
            count += 1

        self._save(existing)
        logger.info("Imported %d custom task(s) into %s", count, self.path)
        return count

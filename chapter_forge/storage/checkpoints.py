"""Append-only checkpoint stores and the manager the story runner resumes from."""

import copy
import json
import re
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

from loguru import logger

from ..models import Checkpoint, CheckpointPhase


def new_checkpoint(task_id: str, phase: str, state: dict[str, Any], progress: dict[str, Any]) -> Checkpoint:
    return Checkpoint(
        id=str(uuid.uuid4()),
        task_id=task_id,
        phase=phase,
        progress=copy.deepcopy(progress),
        state=copy.deepcopy(state),
        created_at=datetime.now(timezone.utc).isoformat(),
    )


class CheckpointStore(Protocol):
    def create(self, task_id: str, phase: str, state: dict[str, Any], progress: dict[str, Any]) -> Checkpoint: ...

    def find_latest(self, task_id: str) -> Optional[Checkpoint]: ...

    def find_all(self, task_id: str) -> list[Checkpoint]: ...

    def delete_by_task(self, task_id: str) -> None: ...


class InMemoryCheckpointStore:
    def __init__(self):
        self._by_task: dict[str, list[Checkpoint]] = {}

    def create(self, task_id, phase, state, progress):
        checkpoint = new_checkpoint(task_id, phase, state, progress)
        self._by_task.setdefault(task_id, []).append(checkpoint)
        return checkpoint

    def find_latest(self, task_id):
        checkpoints = self._by_task.get(task_id)
        return checkpoints[-1] if checkpoints else None

    def find_all(self, task_id):
        return list(self._by_task.get(task_id, ()))

    def delete_by_task(self, task_id):
        self._by_task.pop(task_id, None)


class JsonlCheckpointStore:
    """One JSONL file per task; each line is a checkpoint, the last line is the latest."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, task_id: str) -> Path:
        safe = re.sub(r"[^\w.-]", "_", task_id)
        return self.directory / f"{safe}.jsonl"

    def create(self, task_id, phase, state, progress):
        checkpoint = new_checkpoint(task_id, phase, state, progress)
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self._path(task_id), "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(checkpoint), ensure_ascii=False))
            f.write("\n")
        return checkpoint

    def find_all(self, task_id):
        path = self._path(task_id)
        if not path.exists():
            return []
        checkpoints = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    checkpoints.append(Checkpoint(**json.loads(line)))
        return checkpoints

    def find_latest(self, task_id):
        checkpoints = self.find_all(task_id)
        return checkpoints[-1] if checkpoints else None

    def delete_by_task(self, task_id):
        self._path(task_id).unlink(missing_ok=True)


class CheckpointManager:
    def __init__(self, store: CheckpointStore):
        self.store = store

    def save_checkpoint(
        self,
        task_id: str,
        phase: CheckpointPhase | str,
        state: dict[str, Any],
        progress: Optional[dict[str, Any]] = None,
    ) -> Checkpoint:
        phase_value = phase.value if isinstance(phase, CheckpointPhase) else phase
        checkpoint = self.store.create(task_id, phase_value, state, progress or {})
        logger.debug(f"Checkpoint {checkpoint.id[:8]} saved for {task_id} ({phase_value})")
        return checkpoint

    def get_latest_checkpoint(self, task_id: str) -> Optional[Checkpoint]:
        return self.store.find_latest(task_id)

    def can_resume(self, task_id: str) -> bool:
        return self.store.find_latest(task_id) is not None

    def get_resume_state(self, task_id: str) -> Optional[dict[str, Any]]:
        """The latest stored state plus ``_phase`` and ``_progress``.

        Returns a fresh copy; the stored checkpoint is never modified.
        """
        checkpoint = self.store.find_latest(task_id)
        if checkpoint is None:
            return None
        state = copy.deepcopy(checkpoint.state)
        state["_phase"] = checkpoint.phase
        state["_progress"] = copy.deepcopy(checkpoint.progress)
        return state

    def clear_checkpoints(self, task_id: str) -> None:
        self.store.delete_by_task(task_id)
        logger.debug(f"Checkpoints cleared for {task_id}")

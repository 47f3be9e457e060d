from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CheckpointPhase(str, Enum):
    PLOT_GENERATION = "plot_generation"
    CHAPTER_START = "chapter_start"
    TOURNAMENT = "tournament"
    COMPLIANCE = "compliance"
    CORRECTION = "correction"
    READER_JURY = "reader_jury"
    CHAPTER_DONE = "chapter_done"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class Checkpoint:
    id: str
    task_id: str
    phase: str
    progress: dict[str, Any] = field(default_factory=dict)
    state: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

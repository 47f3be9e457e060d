from .checkpoints import (
    CheckpointManager,
    CheckpointStore,
    InMemoryCheckpointStore,
    JsonlCheckpointStore,
)

__all__ = [
    "CheckpointManager",
    "CheckpointStore",
    "InMemoryCheckpointStore",
    "JsonlCheckpointStore",
]

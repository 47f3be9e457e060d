import asyncio
from dataclasses import replace

import pytest

from chapter_forge.batch import BatchJob, BatchRunner
from chapter_forge.pipeline import StoryRunner
from chapter_forge.storage import CheckpointManager, InMemoryCheckpointStore
from tests.conftest import make_deps


class TrackingStage:
    """Counts how many chapters are in flight at once."""

    def __init__(self, fail_for: str = ""):
        self.fail_for = fail_for
        self.active = 0
        self.peak = 0

    async def __call__(self, ctx):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.01)
            if self.fail_for and self.fail_for in ctx.prompt:
                raise RuntimeError(f"writer crashed on {self.fail_for}")
            return replace(ctx, text=f"Story of {ctx.prompt}", champion="writer_1", tokens_used=4)
        finally:
            self.active -= 1


def _factory(stage):
    checkpoints = CheckpointManager(InMemoryCheckpointStore())
    return lambda job: StoryRunner(make_deps([]), checkpoints, stage=stage)


def _jobs(n):
    return [BatchJob(task_id=f"task-{i}", chapter_prompts=(f"prompt {i}",)) for i in range(n)]


def test_failed_task_does_not_stop_others():
    stage = TrackingStage(fail_for="prompt 1")
    runner = BatchRunner(_factory(stage), max_workers=3, show_progress=False)

    result = asyncio.run(runner.run(_jobs(3)))

    assert [o.status for o in result.outcomes] == ["completed", "failed", "completed"]
    assert result.completed == 2
    assert result.failed == 1
    assert "writer crashed" in result.outcomes[1].error
    assert result.outcomes[1].result is None
    assert result.total_tokens_used == 8
    assert result.outcomes[0].compliance_score == 1.0
    assert result.outcomes[0].result.chapters[0].text == "Story of prompt 0"


def test_concurrency_is_bounded():
    stage = TrackingStage()
    result = asyncio.run(BatchRunner(_factory(stage), max_workers=2, show_progress=False).run(_jobs(5)))
    assert result.completed == 5
    assert stage.peak == 2


def test_progress_display_does_not_change_outcomes():
    stage = TrackingStage()
    result = asyncio.run(BatchRunner(_factory(stage), max_workers=2, show_progress=True).run(_jobs(2)))
    assert result.completed == 2


def test_per_task_log_files(tmp_path):
    log_dir = tmp_path / "logs"
    runner = BatchRunner(_factory(TrackingStage()), max_workers=2, log_dir=log_dir, show_progress=False)

    asyncio.run(runner.run(_jobs(2)))

    log_text = (log_dir / "task-0.log").read_text(encoding="utf-8")
    assert "Pipeline done" in log_text
    assert (log_dir / "task-1.log").exists()


def test_rejects_zero_workers():
    with pytest.raises(ValueError):
        BatchRunner(_factory(TrackingStage()), max_workers=0)


def test_empty_batch():
    result = asyncio.run(BatchRunner(_factory(TrackingStage()), show_progress=False).run([]))
    assert result.outcomes == ()
    assert result.total_tokens_used == 0

"""Concurrent multi-story generation with per-task failure isolation."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Optional, Sequence

from loguru import logger

from .pipeline import StoryResult, StoryRunner
from .utils.logger import add_task_log, remove_task_log
from .utils.progress import create_progress


@dataclass(frozen=True)
class BatchJob:
    task_id: str
    chapter_prompts: tuple[str, ...]


@dataclass(frozen=True)
class TaskOutcome:
    task_id: str
    status: Literal["completed", "failed"]
    error: Optional[str] = None
    tokens_used: int = 0
    compliance_score: Optional[float] = None
    reader_score: Optional[float] = None
    result: Optional[StoryResult] = None


@dataclass(frozen=True)
class BatchResult:
    outcomes: tuple[TaskOutcome, ...]

    @property
    def completed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "completed")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")

    @property
    def total_tokens_used(self) -> int:
        return sum(o.tokens_used for o in self.outcomes)


class BatchRunner:
    """Runs one ``StoryRunner`` per job, at most ``max_workers`` at a time.

    A job that raises is recorded as a failed outcome; the other jobs keep
    running.
    """

    def __init__(
        self,
        pipeline_factory: Callable[[BatchJob], StoryRunner],
        max_workers: int = 2,
        log_dir: Optional[Path] = None,
        show_progress: bool = True,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.pipeline_factory = pipeline_factory
        self.max_workers = max_workers
        self.log_dir = log_dir
        self.show_progress = show_progress

    async def _run_job(self, job: BatchJob, semaphore: asyncio.Semaphore) -> TaskOutcome:
        async with semaphore:
            if self.log_dir is not None:
                add_task_log(job.task_id, self.log_dir)
            try:
                result = await self.pipeline_factory(job).generate_story(job.task_id, job.chapter_prompts)
            except Exception as e:
                logger.error(f"Task {job.task_id} failed: {e}")
                return TaskOutcome(task_id=job.task_id, status="failed", error=str(e))
            finally:
                if self.log_dir is not None:
                    remove_task_log(job.task_id)

        logger.info(f"Task {job.task_id} completed ({result.total_tokens_used} tokens)")
        return TaskOutcome(
            task_id=job.task_id,
            status="completed",
            tokens_used=result.total_tokens_used,
            compliance_score=result.average_compliance_score,
            reader_score=result.average_reader_score,
            result=result,
        )

    async def run(self, jobs: Sequence[BatchJob]) -> BatchResult:
        semaphore = asyncio.Semaphore(self.max_workers)
        if not self.show_progress:
            outcomes = await asyncio.gather(*(self._run_job(job, semaphore) for job in jobs))
            return BatchResult(outcomes=tuple(outcomes))

        with create_progress() as progress:
            bar = progress.add_task("Generating stories", total=len(jobs))

            async def tracked(job: BatchJob) -> TaskOutcome:
                outcome = await self._run_job(job, semaphore)
                progress.advance(bar)
                return outcome

            outcomes = await asyncio.gather(*(tracked(job) for job in jobs))
        return BatchResult(outcomes=tuple(outcomes))

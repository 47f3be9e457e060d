"""Multi-chapter story generation with cross-chapter state and checkpoint resume."""

from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional, Sequence

from loguru import logger

from ..continuity import create_initial_state, format_state_for_prompt, update_state
from ..errors import ResumeError
from ..models import ChapterContext, CheckpointPhase, CrossChapterState
from ..protocols import StateExtractor
from ..storage import CheckpointManager
from .context import PipelineDeps, Stage
from .stages import run_pipeline

ProgressCallback = Callable[[str, int, int, str], None]


def _noop_progress(msg: str, ch: int, total: int, stage: str) -> None:
    pass


@dataclass(frozen=True)
class ChapterRecord:
    index: int
    prompt: str
    text: str
    champion: Optional[str] = None
    tokens_used: int = 0
    compliance_score: float = 1.0
    reader_score: Optional[float] = None
    correction_attempts: int = 0
    retake_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChapterRecord":
        return cls(**data)


@dataclass(frozen=True)
class StoryResult:
    task_id: str
    chapters: tuple[ChapterRecord, ...]
    state: CrossChapterState
    total_tokens_used: int = 0

    @property
    def text(self) -> str:
        return "\n\n".join(c.text for c in self.chapters)

    @property
    def average_compliance_score(self) -> float:
        if not self.chapters:
            return 0.0
        return sum(c.compliance_score for c in self.chapters) / len(self.chapters)

    @property
    def average_reader_score(self) -> Optional[float]:
        scores = [c.reader_score for c in self.chapters if c.reader_score is not None]
        return sum(scores) / len(scores) if scores else None


def build_chapter_prompt(chapter_prompt: str, state: CrossChapterState) -> str:
    context = format_state_for_prompt(state)
    if not context:
        return chapter_prompt
    return f"{chapter_prompt}\n\n{context}"


class StoryRunner:
    """Runs the stage chain once per chapter prompt.

    After each chapter the state extractor's report is folded into the
    cross-chapter state and a ``chapter_done`` checkpoint is written, so an
    interrupted task resumes at the next unfinished chapter.
    """

    def __init__(
        self,
        deps: PipelineDeps,
        checkpoints: CheckpointManager,
        extractor: Optional[StateExtractor] = None,
        stage: Optional[Stage] = None,
    ):
        self.deps = deps
        self.checkpoints = checkpoints
        self.extractor = extractor
        self.stage = stage

    def _tokens(self) -> int:
        return self.deps.token_counter() if self.deps.token_counter else 0

    async def generate_story(
        self,
        task_id: str,
        chapter_prompts: Sequence[str],
        progress: ProgressCallback = _noop_progress,
    ) -> StoryResult:
        return await self._run(task_id, list(chapter_prompts), [], create_initial_state(), 0, progress)

    async def resume(self, task_id: str, progress: ProgressCallback = _noop_progress) -> StoryResult:
        state = self.checkpoints.get_resume_state(task_id)
        if state is None:
            raise ResumeError(f"No checkpoint found for task {task_id}")
        chapters = [ChapterRecord.from_dict(c) for c in state.get("chapters", [])]
        logger.info(f"Resuming {task_id} after chapter {len(chapters)} (phase {state['_phase']})")
        return await self._run(
            task_id,
            list(state["chapter_prompts"]),
            chapters,
            CrossChapterState.from_dict(state.get("cross_chapter_state", {})),
            state.get("total_tokens_used", 0),
            progress,
        )

    async def _run(
        self,
        task_id: str,
        prompts: list[str],
        chapters: list[ChapterRecord],
        cross_state: CrossChapterState,
        total_tokens: int,
        progress: ProgressCallback,
    ) -> StoryResult:
        total = len(prompts)
        with logger.contextualize(task_id=task_id):
            for index in range(len(chapters), total):
                num = index + 1
                progress(f"Chapter {num}: running pipeline...", num, total, "pipeline")
                context = ChapterContext(
                    chapter_index=index,
                    previous_chapter_texts=tuple(c.text for c in chapters),
                    cross_chapter_state=cross_state,
                )
                ctx = await run_pipeline(
                    build_chapter_prompt(prompts[index], cross_state), self.deps, context, self.stage
                )

                extra_tokens = 0
                if self.extractor is not None:
                    progress(f"Chapter {num}: extracting state...", num, total, "state")
                    before = self._tokens()
                    extraction = await self.extractor.extract(ctx.text, index, cross_state)
                    extra_tokens = self._tokens() - before
                    cross_state = update_state(cross_state, extraction, index)

                compliance = ctx.compliance_result or self.deps.checker.check(ctx.text)
                record = ChapterRecord(
                    index=index,
                    prompt=prompts[index],
                    text=ctx.text,
                    champion=ctx.champion,
                    tokens_used=ctx.tokens_used + extra_tokens,
                    compliance_score=compliance.score,
                    reader_score=ctx.reader_jury_result.aggregated_score if ctx.reader_jury_result else None,
                    correction_attempts=ctx.correction_attempts,
                    retake_count=ctx.reader_retake_count,
                )
                chapters.append(record)
                total_tokens += record.tokens_used

                self.checkpoints.save_checkpoint(
                    task_id,
                    CheckpointPhase.CHAPTER_DONE,
                    {
                        "chapter_prompts": prompts,
                        "chapters": [c.to_dict() for c in chapters],
                        "cross_chapter_state": cross_state.to_dict(),
                        "total_tokens_used": total_tokens,
                    },
                    progress={"completed_chapters": num, "total_chapters": total},
                )
                progress(f"Chapter {num} done ({record.tokens_used} tokens)", num, total, "done")

        return StoryResult(
            task_id=task_id,
            chapters=tuple(chapters),
            state=cross_state,
            total_tokens_used=total_tokens,
        )

from .compose import pipe, try_stage, when
from .context import PipelineContext, PipelineDeps, Stage
from .factory import build_deps
from .stages import (
    build_default_pipeline,
    compliance_stage,
    correction_stage,
    reader_jury_stage,
    retake_stage,
    run_pipeline,
    synthesis_stage,
    synthesis_v2_stage,
    tournament_stage,
)
from .story import ChapterRecord, ProgressCallback, StoryResult, StoryRunner, build_chapter_prompt

__all__ = [
    "pipe",
    "try_stage",
    "when",
    "PipelineContext",
    "PipelineDeps",
    "Stage",
    "build_deps",
    "build_default_pipeline",
    "compliance_stage",
    "correction_stage",
    "reader_jury_stage",
    "retake_stage",
    "run_pipeline",
    "synthesis_stage",
    "synthesis_v2_stage",
    "tournament_stage",
    "ChapterRecord",
    "ProgressCallback",
    "StoryResult",
    "StoryRunner",
    "build_chapter_prompt",
]

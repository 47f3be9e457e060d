"""Immutable context threaded through the stage chain and the collaborators stages use."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence

from ..config import Config
from ..models import (
    ChapterContext,
    ComplianceResult,
    ImprovementPlan,
    ReaderJuryResult,
    TournamentResult,
)
from ..protocols import Corrector, Generator, Judge, Retaker

if TYPE_CHECKING:
    from ..agents import ReaderJury
    from ..compliance import ComplianceChecker
    from ..synthesis import SynthesisAgent, SynthesizerV2


@dataclass
class PipelineDeps:
    """Collaborators for one run of the stage chain.

    Optional collaborators disable the stage that needs them.
    """

    writers: Sequence[Generator]
    judge_factory: Callable[[], Judge]
    checker: "ComplianceChecker"
    corrector: Optional[Corrector] = None
    retaker: Optional[Retaker] = None
    reader_jury: Optional["ReaderJury"] = None
    synthesizer: Optional["SynthesisAgent"] = None
    synthesizer_v2: Optional["SynthesizerV2"] = None
    config: Config = field(default_factory=Config)
    token_counter: Optional[Callable[[], int]] = None


@dataclass(frozen=True)
class PipelineContext:
    """State of one chapter as it moves through the stages.

    ``None`` means "not computed yet"; stages never mutate, they return
    ``dataclasses.replace`` copies.
    """

    prompt: str
    deps: PipelineDeps
    text: str = ""
    tokens_used: int = 0
    correction_attempts: int = 0
    reader_retake_count: int = 0
    synthesized: bool = False
    champion: Optional[str] = None
    tournament_result: Optional[TournamentResult] = None
    compliance_result: Optional[ComplianceResult] = None
    reader_jury_result: Optional[ReaderJuryResult] = None
    improvement_plan: Optional[ImprovementPlan] = None
    chapter_context: Optional[ChapterContext] = None


Stage = Callable[[PipelineContext], Awaitable[PipelineContext]]

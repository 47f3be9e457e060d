from .chapter_state import (
    ChapterContext,
    ChapterStateExtraction,
    ChapterSummary,
    CharacterState,
    CrossChapterState,
    MotifOccurrence,
    MotifWearEntry,
    WearLevel,
    fallback_extraction,
)
from .checkpoint import Checkpoint, CheckpointPhase
from .compliance import ComplianceResult, CorrectionResult, Position, Severity, Violation
from .judge import JudgeResult, ScoreBreakdown, fallback_judge_result
from .reader import CategoryScores, PersonaFeedback, ReaderEvaluation, ReaderJuryResult
from .revision import CorrectionOutput, RetakeLoopResult, RetakeResult
from .synthesis import (
    ExpressionSource,
    ImprovementAction,
    ImprovementPlan,
    LoserExcerpt,
    SynthesisInput,
    SynthesisResult,
    SynthesisV2Result,
    fallback_plan,
)
from .tournament import GenerationResult, MatchResult, TournamentResult

__all__ = [
    "ChapterContext",
    "ChapterStateExtraction",
    "ChapterSummary",
    "CharacterState",
    "CrossChapterState",
    "MotifOccurrence",
    "MotifWearEntry",
    "WearLevel",
    "fallback_extraction",
    "Checkpoint",
    "CheckpointPhase",
    "ComplianceResult",
    "CorrectionResult",
    "Position",
    "Severity",
    "Violation",
    "JudgeResult",
    "ScoreBreakdown",
    "fallback_judge_result",
    "CategoryScores",
    "PersonaFeedback",
    "ReaderEvaluation",
    "ReaderJuryResult",
    "CorrectionOutput",
    "RetakeLoopResult",
    "RetakeResult",
    "ExpressionSource",
    "ImprovementAction",
    "ImprovementPlan",
    "LoserExcerpt",
    "SynthesisInput",
    "SynthesisResult",
    "SynthesisV2Result",
    "fallback_plan",
    "GenerationResult",
    "MatchResult",
    "TournamentResult",
]

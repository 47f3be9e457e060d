"""Structural interfaces for the collaborators the pipeline is wired with.

The agents in ``chapter_forge.agents`` implement these; tests substitute
plain fakes.
"""

from typing import Optional, Protocol, Sequence

from .models import (
    ChapterContext,
    ChapterStateExtraction,
    CorrectionOutput,
    CrossChapterState,
    GenerationResult,
    JudgeResult,
    ReaderEvaluation,
    RetakeResult,
    Violation,
)


class Generator(Protocol):
    async def generate(self, prompt: str) -> str: ...

    async def generate_with_metadata(self, prompt: str) -> GenerationResult: ...


class Judge(Protocol):
    async def evaluate(self, text_a: str, text_b: str) -> JudgeResult: ...


class Corrector(Protocol):
    async def correct(
        self,
        text: str,
        violations: Sequence[Violation],
        chapter_context: Optional[ChapterContext] = None,
    ) -> CorrectionOutput: ...


class Retaker(Protocol):
    async def retake(self, text: str, feedback: str) -> RetakeResult: ...


class PersonaEvaluator(Protocol):
    async def evaluate(self, text: str) -> ReaderEvaluation: ...


class ComplianceRule(Protocol):
    name: str

    def check(self, text: str) -> list[Violation]: ...


class AsyncComplianceRule(Protocol):
    name: str

    async def check(self, text: str, chapter_context: Optional[ChapterContext] = None) -> list[Violation]: ...


class StateExtractor(Protocol):
    async def extract(
        self, chapter_text: str, chapter_index: int, previous_state: CrossChapterState = CrossChapterState()
    ) -> ChapterStateExtraction: ...

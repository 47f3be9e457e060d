"""Shared fakes and fixtures. Nothing here talks to a real LLM endpoint."""

import asyncio
from typing import Callable, Optional

import pytest

from chapter_forge.compliance import ComplianceChecker, ForbiddenWordsRule
from chapter_forge.config import Config
from chapter_forge.models import (
    CategoryScores,
    ChapterStateExtraction,
    CharacterState,
    CorrectionOutput,
    GenerationResult,
    JudgeResult,
    MotifOccurrence,
    PersonaFeedback,
    ReaderEvaluation,
    RetakeResult,
    ScoreBreakdown,
)
from chapter_forge.parsing import parse_structured
from chapter_forge.pipeline import PipelineDeps


class TokenMeter:
    """Stands in for ``LLMClient.total_tokens`` as a monotonic counter."""

    def __init__(self):
        self.total = 0

    def __call__(self) -> int:
        return self.total


class FakeLLM:
    """Scripted replacement for ``LLMClient``.

    ``responses`` is either a list consumed in order or a callable
    ``(system, prompt) -> str``.
    """

    def __init__(self, responses=None, tokens_per_call: int = 10):
        self.responder: Optional[Callable[[str, str], str]] = responses if callable(responses) else None
        self.responses = [] if callable(responses) else list(responses or [])
        self.tokens_per_call = tokens_per_call
        self.total_tokens = 0
        self.calls = []

    async def complete(self, system, prompt, temperature=None, max_tokens=None, agent_name="llm"):
        self.calls.append({"system": system, "prompt": prompt, "agent": agent_name, "temperature": temperature})
        self.total_tokens += self.tokens_per_call
        if self.responder is not None:
            return self.responder(system, prompt)
        return self.responses.pop(0) if self.responses else ""

    async def complete_structured(self, system, prompt, schema, temperature=None, agent_name="llm"):
        raw = await self.complete(system, prompt, temperature=temperature, agent_name=agent_name)
        return parse_structured(raw, schema)


class TextOnlyLLM:
    """A client without structured output support."""

    def __init__(self):
        self.total_tokens = 0

    async def complete(self, system, prompt, temperature=None, max_tokens=None, agent_name="llm"):
        return ""


def make_judge_result(
    winner: str = "A",
    a: Optional[dict] = None,
    b: Optional[dict] = None,
    praised: Optional[dict] = None,
    reasoning: str = "A reads better",
) -> JudgeResult:
    return JudgeResult(
        winner=winner,
        reasoning=reasoning,
        scores={"A": ScoreBreakdown(**(a or {})), "B": ScoreBreakdown(**(b or {}))},
        praised_excerpts={k: tuple(v) for k, v in (praised or {"A": (), "B": ()}).items()},
    )


class FakeWriter:
    def __init__(self, generator_id: str, text: Optional[str] = None, tokens: int = 5,
                 meter: Optional[TokenMeter] = None, error: Optional[Exception] = None):
        self.generator_id = generator_id
        self.text = text
        self.tokens = tokens
        self.meter = meter
        self.error = error
        self.prompts = []

    async def generate_with_metadata(self, prompt: str) -> GenerationResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.meter is not None:
            self.meter.total += self.tokens
        text = self.text if self.text is not None else f"{self.generator_id} wrote this."
        return GenerationResult(generator_id=self.generator_id, text=text, tokens_used=self.tokens)

    async def generate(self, prompt: str) -> str:
        return (await self.generate_with_metadata(prompt)).text


class LengthJudge:
    """Prefers the longer text (A on ties) and praises the first word of each side."""

    def __init__(self, overall: float = 0.9, voice: float = 0.9):
        self.overall = overall
        self.voice = voice
        self.calls = []

    async def evaluate(self, text_a: str, text_b: str) -> JudgeResult:
        self.calls.append((text_a, text_b))
        scores = {"overall": self.overall, "voice_accuracy": self.voice}
        return make_judge_result(
            winner="B" if len(text_b) > len(text_a) else "A",
            a=scores,
            b=scores,
            praised={"A": [text_a.split()[0]] if text_a else [], "B": [text_b.split()[0]] if text_b else []},
            reasoning=f"{len(text_a)} vs {len(text_b)}",
        )


class ScriptedJudge:
    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    async def evaluate(self, text_a: str, text_b: str) -> JudgeResult:
        self.calls.append((text_a, text_b))
        return self.results.pop(0)


class AlwaysAJudge:
    """Picks contestant A every time; praises only what ``praised`` names."""

    def __init__(self, praised: Optional[dict] = None, overall: float = 0.9):
        self.praised = praised
        self.overall = overall

    async def evaluate(self, text_a: str, text_b: str) -> JudgeResult:
        scores = {"overall": self.overall, "voice_accuracy": 0.9}
        return make_judge_result(winner="A", a=scores, b=scores, praised=self.praised)


class FakeCorrector:
    def __init__(self, outputs, tokens: int = 7):
        self.outputs = list(outputs)
        self.tokens = tokens
        self.calls = []

    async def correct(self, text, violations, chapter_context=None) -> CorrectionOutput:
        self.calls.append((text, tuple(violations), chapter_context))
        out = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        return CorrectionOutput(corrected_text=out, tokens_used=self.tokens)


class FakeRetaker:
    def __init__(self, outputs, tokens: int = 11):
        self.outputs = list(outputs)
        self.tokens = tokens
        self.calls = []

    async def retake(self, text: str, feedback: str) -> RetakeResult:
        self.calls.append((text, feedback))
        out = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        return RetakeResult(retaken_text=out, tokens_used=self.tokens)


class FakeEvaluator:
    def __init__(self, persona_id: str, score: float, error: Optional[Exception] = None, delay: float = 0):
        self.persona_id = persona_id
        self.score = score
        self.error = error
        self.delay = delay

    async def evaluate(self, text: str) -> ReaderEvaluation:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ReaderEvaluation(
            persona_id=self.persona_id,
            persona_name=self.persona_id.title(),
            category_scores=CategoryScores(),
            weighted_score=self.score,
            feedback=PersonaFeedback(strengths="pace", weaknesses="flat ending", suggestion="sharpen the ending"),
        )


class FakeExtractor:
    def __init__(self):
        self.calls = []

    async def extract(self, chapter_text, chapter_index, previous_state=None) -> ChapterStateExtraction:
        self.calls.append((chapter_text, chapter_index))
        return ChapterStateExtraction(
            character_states=(CharacterState(character_name="Mara", emotional_state="wary"),),
            motif_occurrences=(MotifOccurrence(motif="rain", count=2),),
            next_variation_hint="Open indoors this time",
            chapter_summary=f"Summary of chapter {chapter_index + 1}",
            dominant_tone="quiet",
            peak_intensity=3,
        )


def make_deps(writers, judge=None, forbidden=("bad",), config=None, **kwargs) -> PipelineDeps:
    judge = judge or LengthJudge()
    return PipelineDeps(
        writers=writers,
        judge_factory=lambda: judge,
        checker=ComplianceChecker([ForbiddenWordsRule(forbidden)]),
        config=config or Config(),
        **kwargs,
    )


@pytest.fixture
def meter():
    return TokenMeter()


@pytest.fixture
def four_writers(meter):
    return [
        FakeWriter("writer_1", "Rain fell.", meter=meter),
        FakeWriter("writer_2", "The bad storm came over the hills.", meter=meter),
        FakeWriter("writer_3", "Wind rose at dusk.", meter=meter),
        FakeWriter("writer_4", "Night.", meter=meter),
    ]

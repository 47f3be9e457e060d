"""Two-pass synthesis: an analyzer drafts an improvement plan, an executor applies it."""

from typing import Sequence

from loguru import logger

from ..agents.base import BaseAgent
from ..llm.client import LLMClient
from ..models import (
    ExpressionSource,
    ImprovementAction,
    ImprovementPlan,
    MatchResult,
    SynthesisInput,
    SynthesisV2Result,
    fallback_plan,
)
from ..parsing import Err
from ..prompts import DEFAULT_VOICE
from ..schemas import ImprovementPlanResponse
from .simple import collect_loser_excerpts, format_loser_excerpts

_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def to_plan(data: ImprovementPlanResponse) -> ImprovementPlan:
    return ImprovementPlan(
        champion_assessment=data.champion_assessment,
        preserve_elements=tuple(data.preserve_elements),
        actions=tuple(
            ImprovementAction(
                section=a.section,
                type=a.type,
                description=a.description,
                source=a.source,
                priority=a.priority,
            )
            for a in data.actions
        ),
        expression_sources=tuple(
            ExpressionSource(writer_id=s.writer_id, expressions=tuple(s.expressions), context=s.context)
            for s in data.expression_sources
        ),
        structural_changes=tuple(data.structural_changes) if data.structural_changes is not None else None,
    )


def format_judge_notes(inp: SynthesisInput) -> str:
    """Loser excerpts followed by the weaknesses the judge recorded per match."""
    parts = [format_loser_excerpts(collect_loser_excerpts(inp.champion_id, inp.all_generations, inp.rounds))]
    parts.extend(_match_weaknesses(inp.rounds))
    if inp.chapter_context and inp.chapter_context.chapter_index > 0:
        parts.append(f"(This is chapter {inp.chapter_context.chapter_index + 1} of a longer story.)")
    return "\n\n".join(p for p in parts if p) or "(no notes)"


def _match_weaknesses(rounds: Sequence[MatchResult]) -> list[str]:
    notes = []
    for match in rounds:
        weaknesses = match.judge_result.weaknesses
        if not weaknesses:
            continue
        lines = [f"### {match.match_name} weaknesses"]
        for side, contestant in (("A", match.contestant_a), ("B", match.contestant_b)):
            for w in weaknesses.get(side, ()):
                lines.append(f"- {contestant}: {w.get('description') or w}")
        notes.append("\n".join(lines))
    return notes


def format_plan_actions(plan: ImprovementPlan) -> str:
    actions = sorted(plan.actions, key=lambda a: _PRIORITY_ORDER.get(a.priority, 1))
    lines = []
    for i, a in enumerate(actions, 1):
        line = f"{i}. [{a.priority}] {a.section}: {a.description}"
        if a.source:
            line += f" (from {a.source})"
        lines.append(line)
    for change in plan.structural_changes or ():
        lines.append(f"- structural: {change}")
    return "\n".join(lines) or "(none)"


def format_plan_expressions(plan: ImprovementPlan) -> str:
    lines = []
    for src in plan.expression_sources:
        lines.append(f"### {src.writer_id}" + (f" ({src.context})" if src.context else ""))
        lines.extend(f"- {e}" for e in src.expressions)
    return "\n".join(lines) or "(none)"


class SynthesisAnalyzer(BaseAgent):
    template = "synthesis_analyzer"

    def __init__(self, llm: LLMClient, temperature: float = 1.0):
        super().__init__("SynthesisAnalyzer", llm)
        self.temperature = temperature

    async def analyze(self, inp: SynthesisInput) -> tuple[ImprovementPlan, int]:
        result, tokens = await self.call_structured(
            {
                "champion_id": inp.champion_id,
                "champion_text": inp.champion_text,
                "loser_notes": format_judge_notes(inp),
            },
            ImprovementPlanResponse,
            temperature=self.temperature,
        )
        if isinstance(result, Err):
            logger.warning(f"Synthesis analyzer output unusable ({result.message}), using fallback plan")
            return fallback_plan(), tokens
        plan = to_plan(result.value)
        logger.debug(f"Improvement plan: {len(plan.actions)} action(s), {len(plan.expression_sources)} source(s)")
        return plan, tokens


class SynthesisExecutor(BaseAgent):
    template = "synthesis_executor"

    def __init__(self, llm: LLMClient, voice: str = DEFAULT_VOICE, temperature: float = 1.0):
        super().__init__("SynthesisExecutor", llm)
        self.voice = voice
        self.temperature = temperature

    async def execute(self, champion_text: str, plan: ImprovementPlan) -> tuple[str, int]:
        return await self.call_text(
            {
                "voice": self.voice,
                "champion_text": champion_text,
                "assessment": plan.champion_assessment or "(none)",
                "preserve": "\n".join(f"- {p}" for p in plan.preserve_elements) or "(none)",
                "actions": format_plan_actions(plan),
                "expressions": format_plan_expressions(plan),
            },
            temperature=self.temperature,
        )


class SynthesizerV2:
    """Analyze, then execute. Skipped entirely when no loser has a praised excerpt."""

    def __init__(self, analyzer: SynthesisAnalyzer, executor: SynthesisExecutor):
        self.analyzer = analyzer
        self.executor = executor

    async def synthesize(self, inp: SynthesisInput) -> SynthesisV2Result:
        losers = collect_loser_excerpts(inp.champion_id, inp.all_generations, inp.rounds)
        if not any(loser.excerpts for loser in losers):
            logger.debug("No praised loser excerpts, skipping plan synthesis")
            return SynthesisV2Result(synthesized_text=inp.champion_text, plan=None, total_tokens_used=0)

        plan, analyze_tokens = await self.analyzer.analyze(inp)
        text, execute_tokens = await self.executor.execute(inp.champion_text, plan)
        return SynthesisV2Result(
            synthesized_text=text,
            plan=plan,
            total_tokens_used=analyze_tokens + execute_tokens,
            applied=True,
        )

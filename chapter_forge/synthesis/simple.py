"""Single-pass synthesis: weave praised loser excerpts into the champion."""

from typing import Sequence

from loguru import logger

from ..agents.base import BaseAgent
from ..llm.client import LLMClient
from ..models import GenerationResult, LoserExcerpt, MatchResult, SynthesisResult
from ..prompts import DEFAULT_VOICE


def collect_loser_excerpts(
    champion_id: str,
    generations: Sequence[GenerationResult],
    rounds: Sequence[MatchResult],
) -> list[LoserExcerpt]:
    """Gather what the judge praised in every non-champion entry.

    For each loser, walk every match it took part in and take the excerpts
    praised on its side plus the match reasoning. Losers with neither are
    dropped.
    """
    results = []
    for gen in generations:
        loser_id = gen.generator_id
        if loser_id == champion_id:
            continue

        excerpts: list[str] = []
        reasonings: list[str] = []
        for match in rounds:
            if match.contestant_a == loser_id:
                side = "A"
            elif match.contestant_b == loser_id:
                side = "B"
            else:
                continue
            excerpts.extend(match.judge_result.praised_excerpts.get(side, ()))
            if match.judge_result.reasoning:
                reasonings.append(match.judge_result.reasoning)

        if excerpts or reasonings:
            results.append(
                LoserExcerpt(
                    generator_id=loser_id,
                    excerpts=tuple(excerpts),
                    reasoning=" / ".join(reasonings),
                )
            )
    return results


def format_loser_excerpts(losers: Sequence[LoserExcerpt]) -> str:
    blocks = []
    for loser in losers:
        lines = [f"### {loser.generator_id}"]
        lines.extend(f"- {e}" for e in loser.excerpts)
        if loser.reasoning:
            lines.append(f"Judge: {loser.reasoning}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


class SynthesisAgent(BaseAgent):
    template = "synthesis"

    def __init__(self, llm: LLMClient, voice: str = DEFAULT_VOICE, temperature: float = 0.6):
        super().__init__("Synthesizer", llm)
        self.voice = voice
        self.temperature = temperature

    async def synthesize(
        self,
        champion_text: str,
        champion_id: str,
        generations: Sequence[GenerationResult],
        rounds: Sequence[MatchResult],
    ) -> SynthesisResult:
        losers = collect_loser_excerpts(champion_id, generations, rounds)
        if not any(loser.excerpts for loser in losers):
            logger.debug("No praised loser excerpts, keeping champion text")
            return SynthesisResult(synthesized_text=champion_text, tokens_used=0)

        text, tokens = await self.call_text(
            {
                "voice": self.voice,
                "champion_text": champion_text,
                "loser_excerpts": format_loser_excerpts(losers),
            },
            temperature=self.temperature,
        )
        logger.info(f"Synthesis merged {len(losers)} loser(s), {tokens} tokens")
        return SynthesisResult(synthesized_text=text, tokens_used=tokens, applied=True)

"""Single-elimination bracket over the configured writers."""

import asyncio
from typing import Callable, Optional, Sequence

from loguru import logger

from ..models import GenerationResult, MatchResult, TournamentResult
from ..protocols import Generator, Judge


def match_name(round_number: int, match_number: int, total_rounds: int) -> str:
    """Name a match by its distance from the final.

    With four writers the matches are ``semifinal_1``, ``semifinal_2``, ``final``.
    """
    remaining = total_rounds - round_number
    if remaining == 0:
        return "final"
    if remaining == 1:
        return f"semifinal_{match_number}"
    if remaining == 2:
        return f"quarterfinal_{match_number}"
    return f"round{round_number}_match{match_number}"


class TournamentArena:
    """Runs every writer on the same prompt and lets the judge pick a champion.

    Args:
        writers: Contestants in seed order; the count must be a power of two.
        judge_factory: Returns the judge used for one match.
        token_counter: Reads the shared LLM token counter. The tournament
            reports the counter's delta across the whole run.
    """

    def __init__(
        self,
        writers: Sequence[Generator],
        judge_factory: Callable[[], Judge],
        token_counter: Optional[Callable[[], int]] = None,
    ):
        n = len(writers)
        if n < 2 or n & (n - 1):
            raise ValueError(f"Tournament needs a power-of-two number of writers, got {n}")
        self.writers = list(writers)
        self.judge_factory = judge_factory
        self.token_counter = token_counter

    def _tokens(self) -> int:
        return self.token_counter() if self.token_counter else 0

    async def _run_match(
        self, name: str, a: GenerationResult, b: GenerationResult
    ) -> MatchResult:
        judge_result = await self.judge_factory().evaluate(a.text, b.text)
        winner = a.generator_id if judge_result.winner == "A" else b.generator_id
        match = MatchResult(
            match_name=name,
            contestant_a=a.generator_id,
            contestant_b=b.generator_id,
            winner=winner,
            judge_result=judge_result,
        )
        logger.debug(
            f"Match {name}: {winner} wins ({a.generator_id} vs {b.generator_id}) "
            f"- {judge_result.reasoning[:120]}"
        )
        return match

    async def run_tournament(self, prompt: str) -> TournamentResult:
        tokens_start = self._tokens()

        # Any writer failure aborts the tournament
        generations = tuple(
            await asyncio.gather(*(w.generate_with_metadata(prompt) for w in self.writers))
        )
        by_id = {g.generator_id: g for g in generations}
        if len(by_id) != len(generations):
            raise ValueError("Writer ids must be unique within a tournament")
        for g in generations:
            logger.debug(f"{g.generator_id}: {len(g.text)} chars, {g.tokens_used} tokens")

        total_rounds = len(generations).bit_length() - 1
        contestants = list(generations)
        rounds: list[MatchResult] = []

        for round_number in range(1, total_rounds + 1):
            pairs = [(contestants[i], contestants[i + 1]) for i in range(0, len(contestants), 2)]
            matches = await asyncio.gather(
                *(
                    self._run_match(match_name(round_number, m, total_rounds), a, b)
                    for m, (a, b) in enumerate(pairs, 1)
                )
            )
            rounds.extend(matches)
            contestants = [by_id[m.winner] for m in matches]

        champion = contestants[0]
        logger.info(f"Tournament champion: {champion.generator_id}")

        return TournamentResult(
            champion_id=champion.generator_id,
            champion_text=champion.text,
            rounds=tuple(rounds),
            all_generations=generations,
            total_tokens_used=self._tokens() - tokens_start,
        )

"""Data models for the tournament bracket."""

from dataclasses import dataclass

from .judge import JudgeResult


@dataclass(frozen=True)
class GenerationResult:
    generator_id: str
    text: str
    tokens_used: int = 0


@dataclass(frozen=True)
class MatchResult:
    match_name: str
    contestant_a: str
    contestant_b: str
    winner: str
    judge_result: JudgeResult


@dataclass(frozen=True)
class TournamentResult:
    champion_id: str
    champion_text: str
    rounds: tuple[MatchResult, ...] = ()
    all_generations: tuple[GenerationResult, ...] = ()
    total_tokens_used: int = 0

    def generation_for(self, generator_id: str) -> GenerationResult:
        for g in self.all_generations:
            if g.generator_id == generator_id:
                return g
        raise KeyError(f"Generation not found for generator: {generator_id}")

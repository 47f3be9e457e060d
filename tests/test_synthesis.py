import asyncio
import json

import pytest

from chapter_forge.models import GenerationResult, MatchResult, SynthesisInput, fallback_plan
from chapter_forge.synthesis import (
    SynthesisAgent,
    SynthesisAnalyzer,
    SynthesisExecutor,
    SynthesizerV2,
    collect_loser_excerpts,
)
from chapter_forge.tournament import TournamentArena
from tests.conftest import AlwaysAJudge, FakeLLM, LengthJudge, make_judge_result

PLAN_JSON = json.dumps({
    "champion_assessment": "Strong image, weak close",
    "preserve_elements": ["the storm"],
    "actions": [
        {"section": "ending", "description": "borrow the dusk image", "source": "writer_3", "priority": "low"},
        {"section": "opening", "description": "open on the rain", "source": "writer_1", "priority": "high"},
    ],
    "expression_sources": [{"writer_id": "writer_3", "expressions": ["Wind rose at dusk."]}],
})


@pytest.fixture
def bracket(four_writers):
    return asyncio.run(TournamentArena(four_writers, LengthJudge).run_tournament("p"))


def test_collect_loser_excerpts(bracket):
    losers = collect_loser_excerpts(bracket.champion_id, bracket.all_generations, bracket.rounds)

    assert [loser.generator_id for loser in losers] == ["writer_1", "writer_3", "writer_4"]
    assert losers[0].excerpts == ("Rain",)
    assert losers[0].reasoning == "10 vs 34"
    # writer_3 won its semifinal and lost the final; both matches count
    assert losers[1].excerpts == ("Wind", "Wind")
    assert losers[1].reasoning == "18 vs 6 / 34 vs 18"


def test_losers_without_praise_or_reasoning_are_dropped():
    gens = (GenerationResult("a", "One."), GenerationResult("b", "Two."))
    silent = make_judge_result(winner="A", reasoning="")
    rounds = (MatchResult("final", "a", "b", "a", silent),)
    assert collect_loser_excerpts("a", gens, rounds) == []


def test_synthesis_agent_merges_losers(bracket):
    llm = FakeLLM(["Merged chapter."])

    result = asyncio.run(
        SynthesisAgent(llm).synthesize(bracket.champion_text, bracket.champion_id, bracket.all_generations, bracket.rounds)
    )

    assert result.synthesized_text == "Merged chapter."
    assert result.tokens_used == 10
    assert result.applied
    prompt = llm.calls[0]["prompt"]
    assert bracket.champion_text in prompt
    assert "### writer_1" in prompt
    assert "- Rain" in prompt


def test_synthesis_agent_noop_without_losers():
    llm = FakeLLM(["unused"])
    gens = (GenerationResult("solo", "Only text."),)

    result = asyncio.run(SynthesisAgent(llm).synthesize("Only text.", "solo", gens, ()))

    assert result.synthesized_text == "Only text."
    assert result.tokens_used == 0
    assert not result.applied
    assert llm.calls == []


def test_synthesis_agent_needs_praised_excerpts(four_writers):
    bracket = asyncio.run(TournamentArena(four_writers, AlwaysAJudge).run_tournament("p"))
    llm = FakeLLM(["unused"])

    result = asyncio.run(
        SynthesisAgent(llm).synthesize(bracket.champion_text, bracket.champion_id, bracket.all_generations, bracket.rounds)
    )

    # every loser carries judge reasoning but nothing was praised
    losers = collect_loser_excerpts(bracket.champion_id, bracket.all_generations, bracket.rounds)
    assert [loser.generator_id for loser in losers] == ["writer_2", "writer_3", "writer_4"]
    assert all(loser.reasoning and not loser.excerpts for loser in losers)
    assert result.synthesized_text == "Rain fell."
    assert not result.applied
    assert llm.calls == []


def _input(bracket):
    return SynthesisInput(
        champion_text=bracket.champion_text,
        champion_id=bracket.champion_id,
        all_generations=bracket.all_generations,
        rounds=bracket.rounds,
    )


def test_v2_plans_then_executes(bracket):
    llm = FakeLLM([PLAN_JSON, "Rewritten chapter."])
    synthesizer = SynthesizerV2(SynthesisAnalyzer(llm), SynthesisExecutor(llm))

    result = asyncio.run(synthesizer.synthesize(_input(bracket)))

    assert result.synthesized_text == "Rewritten chapter."
    assert result.total_tokens_used == 20
    assert result.applied
    assert [a.priority for a in result.plan.actions] == ["low", "high"]
    executor_prompt = llm.calls[1]["prompt"]
    assert executor_prompt.index("1. [high] opening") < executor_prompt.index("2. [low] ending")
    assert "- the storm" in executor_prompt
    assert "Wind rose at dusk." in executor_prompt


def test_v2_analyzer_falls_back_to_empty_plan(bracket):
    llm = FakeLLM(["not a plan", "Rewritten anyway."])

    result = asyncio.run(SynthesizerV2(SynthesisAnalyzer(llm), SynthesisExecutor(llm)).synthesize(_input(bracket)))

    assert result.plan == fallback_plan()
    assert result.synthesized_text == "Rewritten anyway."
    assert "(none)" in llm.calls[1]["prompt"]


def test_v2_noop_with_single_generation():
    llm = FakeLLM()
    inp = SynthesisInput(
        champion_text="Only text.", champion_id="solo",
        all_generations=(GenerationResult("solo", "Only text."),), rounds=(),
    )

    result = asyncio.run(SynthesizerV2(SynthesisAnalyzer(llm), SynthesisExecutor(llm)).synthesize(inp))

    assert result.synthesized_text == "Only text."
    assert result.plan is None
    assert result.total_tokens_used == 0
    assert llm.calls == []


def test_v2_skips_when_nothing_was_praised(four_writers):
    bracket = asyncio.run(TournamentArena(four_writers, AlwaysAJudge).run_tournament("p"))
    llm = FakeLLM([PLAN_JSON, "unused"])

    result = asyncio.run(SynthesizerV2(SynthesisAnalyzer(llm), SynthesisExecutor(llm)).synthesize(_input(bracket)))

    assert result.synthesized_text == "Rain fell."
    assert result.plan is None
    assert not result.applied
    assert llm.calls == []

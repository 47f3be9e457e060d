"""Stage factories. Each stage guards its own precondition and passes the
context through unchanged when it has nothing to do."""

from dataclasses import replace
from typing import Optional

from loguru import logger

from ..config import Config, RetakeConfig
from ..correction import CorrectionLoop
from ..llm import HARD_ERRORS
from ..models import ChapterContext, ComplianceResult, SynthesisInput
from ..retake import RetakeLoop
from ..tournament import TournamentArena
from .compose import pipe, try_stage, when
from .context import PipelineContext, PipelineDeps, Stage


def tournament_stage() -> Stage:
    async def tournament(ctx: PipelineContext) -> PipelineContext:
        deps = ctx.deps
        arena = TournamentArena(deps.writers, deps.judge_factory, deps.token_counter)
        result = await arena.run_tournament(ctx.prompt)
        return replace(
            ctx,
            text=result.champion_text,
            champion=result.champion_id,
            tournament_result=result,
            tokens_used=ctx.tokens_used + result.total_tokens_used,
        )

    return tournament


def synthesis_stage() -> Stage:
    async def synthesis(ctx: PipelineContext) -> PipelineContext:
        agent = ctx.deps.synthesizer
        if ctx.tournament_result is None or agent is None:
            return ctx
        result = await agent.synthesize(
            ctx.text,
            ctx.champion,
            ctx.tournament_result.all_generations,
            ctx.tournament_result.rounds,
        )
        return replace(
            ctx,
            text=result.synthesized_text,
            synthesized=result.applied,
            tokens_used=ctx.tokens_used + result.tokens_used,
        )

    return synthesis


def synthesis_v2_stage() -> Stage:
    async def synthesis_v2(ctx: PipelineContext) -> PipelineContext:
        synthesizer = ctx.deps.synthesizer_v2
        if ctx.tournament_result is None or synthesizer is None:
            return ctx
        result = await synthesizer.synthesize(
            SynthesisInput(
                champion_text=ctx.text,
                champion_id=ctx.champion,
                all_generations=ctx.tournament_result.all_generations,
                rounds=ctx.tournament_result.rounds,
                chapter_context=ctx.chapter_context,
            )
        )
        if result.plan is not None:
            delta = len(result.synthesized_text) - len(ctx.text)
            logger.debug(
                f"Synthesis plan applied: {len(result.plan.actions)} action(s), "
                f"{delta:+d} chars"
            )
        return replace(
            ctx,
            text=result.synthesized_text,
            synthesized=result.applied,
            improvement_plan=result.plan,
            tokens_used=ctx.tokens_used + result.total_tokens_used,
        )

    return synthesis_v2


async def _check_compliance(ctx: PipelineContext, text: str) -> ComplianceResult:
    if ctx.chapter_context is not None:
        return await ctx.deps.checker.check_with_context(text, ctx.chapter_context)
    return ctx.deps.checker.check(text)


def compliance_stage() -> Stage:
    async def compliance(ctx: PipelineContext) -> PipelineContext:
        return replace(ctx, compliance_result=await _check_compliance(ctx, ctx.text))

    return compliance


def correction_stage(max_attempts: int = 3) -> Stage:
    async def correction(ctx: PipelineContext) -> PipelineContext:
        if ctx.compliance_result is None or ctx.compliance_result.is_compliant:
            return ctx
        if ctx.deps.corrector is None:
            logger.warning("Text is not compliant but no corrector is configured")
            return ctx
        loop = CorrectionLoop(ctx.deps.corrector, ctx.deps.checker, max_attempts)
        result = await loop.run(ctx.text, ctx.compliance_result.violations, ctx.chapter_context)
        return replace(
            ctx,
            text=result.final_text,
            compliance_result=result.final_compliance or ctx.compliance_result,
            correction_attempts=result.attempts,
            tokens_used=ctx.tokens_used + result.total_tokens_used,
        )

    return correction


def reader_jury_stage() -> Stage:
    async def reader_jury(ctx: PipelineContext) -> PipelineContext:
        if ctx.deps.reader_jury is None:
            return ctx
        result = await ctx.deps.reader_jury.evaluate(ctx.text)
        return replace(ctx, reader_jury_result=result)

    return reader_jury


def retake_stage(config: Optional[RetakeConfig] = None) -> Stage:
    """Retake a text the reader jury failed, then let the jury judge the result.

    The retaken text is kept only when its jury score beats the previous
    one; otherwise the pre-retake text and verdict stand. Compliance is
    re-checked on whichever text is kept.
    """

    async def retake(ctx: PipelineContext) -> PipelineContext:
        jury = ctx.reader_jury_result
        if jury is None or jury.passed or ctx.deps.retaker is None or ctx.deps.reader_jury is None:
            return ctx
        loop = RetakeLoop(ctx.deps.retaker, ctx.deps.judge_factory(), config or ctx.deps.config.retake)
        feedback = f"{jury.summary}\n\n{jury.feedback_digest()}".strip()
        result = await loop.run(ctx.text, feedback)
        ctx = replace(
            ctx,
            reader_retake_count=result.retake_count,
            tokens_used=ctx.tokens_used + result.total_tokens_used,
        )
        if result.final_text == ctx.text:
            return ctx

        rejudged = await ctx.deps.reader_jury.evaluate(result.final_text)
        if rejudged.aggregated_score <= jury.aggregated_score:
            logger.info(
                f"Retake discarded, reader score degraded "
                f"({jury.aggregated_score:.3f} -> {rejudged.aggregated_score:.3f})"
            )
            return ctx
        return replace(
            ctx,
            text=result.final_text,
            reader_jury_result=rejudged,
            compliance_result=await _check_compliance(ctx, result.final_text),
        )

    return retake


def build_default_pipeline(config: Config) -> Stage:
    """Tournament, synthesis, compliance, correction, reader jury, retake.

    Synthesis is best-effort: a failed rewrite keeps the champion text.
    Transport and capability errors still abort the chapter.
    """
    synthesis = synthesis_v2_stage() if config.synthesis.mode == "plan" else synthesis_stage()
    return pipe(
        tournament_stage(),
        try_stage(synthesis, propagate=HARD_ERRORS),
        compliance_stage(),
        when(
            lambda ctx: ctx.compliance_result is not None and not ctx.compliance_result.is_compliant,
            correction_stage(config.correction.max_attempts),
        ),
        reader_jury_stage(),
        retake_stage(config.retake),
    )


async def run_pipeline(
    prompt: str,
    deps: PipelineDeps,
    chapter_context: Optional[ChapterContext] = None,
    stage: Optional[Stage] = None,
) -> PipelineContext:
    chain = stage or build_default_pipeline(deps.config)
    ctx = PipelineContext(prompt=prompt, deps=deps, chapter_context=chapter_context)
    result = await chain(ctx)
    logger.info(
        f"Pipeline done: champion={result.champion}, tokens={result.tokens_used}, "
        f"corrections={result.correction_attempts}, retakes={result.reader_retake_count}"
    )
    return result

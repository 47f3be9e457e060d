"""Stage combinators."""

from typing import Callable, Optional

from loguru import logger

from .context import PipelineContext, Stage


def pipe(*stages: Stage) -> Stage:
    """Run ``stages`` in order, each receiving the previous one's context."""

    async def run(ctx: PipelineContext) -> PipelineContext:
        for stage in stages:
            ctx = await stage(ctx)
        return ctx

    return run


def when(predicate: Callable[[PipelineContext], bool], stage: Stage) -> Stage:
    async def run(ctx: PipelineContext) -> PipelineContext:
        if predicate(ctx):
            return await stage(ctx)
        return ctx

    return run


def try_stage(
    stage: Stage,
    fallback: Optional[Stage] = None,
    propagate: tuple[type[BaseException], ...] = (),
) -> Stage:
    """Run ``stage``; on an exception log it and run ``fallback`` (or pass the input through).

    Exceptions matching ``propagate`` are re-raised untouched.
    """

    async def run(ctx: PipelineContext) -> PipelineContext:
        try:
            return await stage(ctx)
        except propagate:
            raise
        except Exception as e:
            logger.warning(f"Stage {getattr(stage, '__name__', stage)!s} failed: {e}")
            if fallback is not None:
                return await fallback(ctx)
            return ctx

    return run

"""Judge-gated retake loop.

The current text is self-evaluated by the judge (the text compared against
itself). Below threshold, the retaker rewrites it and the judge compares old
against new head to head; the rewrite is adopted only when it wins.
"""

from enum import Enum
from typing import Optional

from loguru import logger

from ..config import RetakeConfig
from ..models import RetakeLoopResult, ScoreBreakdown
from ..protocols import Judge, Retaker

AXIS_FLOOR = 0.6

_AXIS_FEEDBACK = (
    ("style", "The prose rhythm drifts from the established style. Vary sentence length deliberately."),
    ("originality", "The text strays from the established setting and characters. Remove invented material."),
    ("compliance", "The text contains forbidden vocabulary or stock similes."),
)
_VOICE_FEEDBACK = "The narrative voice is off. Hold the required voice consistently throughout."
_GENERIC_FEEDBACK = "Raise the overall quality of the prose."


class RetakeState(str, Enum):
    EVALUATE = "evaluate"
    RETAKE = "retake"
    COMPARE = "compare"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"


TERMINAL_STATES = frozenset({RetakeState.ACCEPTED, RetakeState.EXHAUSTED})


def transition(state: RetakeState, needs_retake: bool, retake_count: int, max_retakes: int) -> RetakeState:
    """Next state of the retake loop; ``needs_retake`` only matters in EVALUATE."""
    if state is RetakeState.EVALUATE:
        if not needs_retake:
            return RetakeState.ACCEPTED
        return RetakeState.RETAKE if retake_count < max_retakes else RetakeState.EXHAUSTED
    if state is RetakeState.RETAKE:
        return RetakeState.COMPARE
    if state is RetakeState.COMPARE:
        return RetakeState.EVALUATE if retake_count < max_retakes else RetakeState.EXHAUSTED
    raise ValueError(f"No transition out of terminal state {state.value}")


def build_feedback(scores: ScoreBreakdown, reasoning: str, min_voice_threshold: float) -> str:
    parts = []
    if scores.voice_accuracy < min_voice_threshold:
        parts.append(_VOICE_FEEDBACK)
    for axis, message in _AXIS_FEEDBACK:
        if getattr(scores, axis) < AXIS_FLOOR:
            parts.append(message)
    if parts:
        return "\n".join(parts)
    return reasoning or _GENERIC_FEEDBACK


class RetakeLoop:
    def __init__(self, retaker: Retaker, judge: Judge, config: Optional[RetakeConfig] = None):
        self.retaker = retaker
        self.judge = judge
        self.config = config or RetakeConfig()

    def _needs_retake(self, scores: ScoreBreakdown) -> bool:
        return (
            scores.overall < self.config.min_score_threshold
            or scores.voice_accuracy < self.config.min_voice_threshold
        )

    async def run(self, text: str, initial_feedback: Optional[str] = None) -> RetakeLoopResult:
        max_retakes = self.config.max_retakes
        state = RetakeState.EVALUATE
        current = text
        candidate = ""
        feedback = ""
        retake_count = 0
        tokens = 0
        last_score: Optional[float] = None

        while state not in TERMINAL_STATES:
            if state is RetakeState.EVALUATE:
                verdict = await self.judge.evaluate(current, current)
                scores = verdict.score_for("A")
                last_score = scores.overall
                needed = self._needs_retake(scores)
                if needed:
                    if retake_count == 0 and initial_feedback:
                        feedback = initial_feedback
                    else:
                        feedback = build_feedback(scores, verdict.reasoning, self.config.min_voice_threshold)
                logger.debug(
                    f"Retake self-eval: overall={scores.overall:.2f}, "
                    f"voice={scores.voice_accuracy:.2f}, retake={'yes' if needed else 'no'}"
                )
                state = transition(state, needed, retake_count, max_retakes)
            elif state is RetakeState.RETAKE:
                result = await self.retaker.retake(current, feedback)
                retake_count += 1
                tokens += result.tokens_used
                candidate = result.retaken_text
                state = transition(state, True, retake_count, max_retakes)
            else:
                verdict = await self.judge.evaluate(current, candidate)
                if verdict.winner == "B":
                    current = candidate
                    last_score = verdict.score_for("B").overall
                    logger.info(f"Retake {retake_count} adopted")
                else:
                    last_score = verdict.score_for("A").overall
                    logger.info(f"Retake {retake_count} rejected, keeping previous text")
                state = transition(state, True, retake_count, max_retakes)

        return RetakeLoopResult(
            final_text=current,
            retake_count=retake_count,
            improved=current != text,
            final_score=last_score,
            total_tokens_used=tokens,
        )

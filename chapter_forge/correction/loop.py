"""Bounded check, correct, recheck loop over compliance violations."""

from enum import Enum
from typing import Optional, Sequence

from loguru import logger

from ..compliance import ComplianceChecker
from ..models import ChapterContext, ComplianceResult, CorrectionResult, Violation
from ..protocols import Corrector

DEFAULT_MAX_ATTEMPTS = 3


class CorrectionState(str, Enum):
    CHECK = "check"
    CORRECT = "correct"
    RECHECK = "recheck"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


TERMINAL_STATES = frozenset({CorrectionState.SUCCEEDED, CorrectionState.EXHAUSTED})


def transition(state: CorrectionState, compliant: bool, attempts: int, max_attempts: int) -> CorrectionState:
    """Next state of the correction loop.

    ``compliant`` is the outcome of the check just made in CHECK or RECHECK
    and is ignored in CORRECT.
    """
    if state is CorrectionState.CHECK:
        if compliant:
            return CorrectionState.SUCCEEDED
        return CorrectionState.CORRECT if max_attempts > 0 else CorrectionState.EXHAUSTED
    if state is CorrectionState.CORRECT:
        return CorrectionState.RECHECK
    if state is CorrectionState.RECHECK:
        if compliant:
            return CorrectionState.SUCCEEDED
        if attempts >= max_attempts:
            return CorrectionState.EXHAUSTED
        return CorrectionState.CORRECT
    raise ValueError(f"No transition out of terminal state {state.value}")


class CorrectionLoop:
    def __init__(self, corrector: Corrector, checker: ComplianceChecker, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.corrector = corrector
        self.checker = checker
        self.max_attempts = max_attempts

    async def _check(self, text: str, chapter_context: Optional[ChapterContext]) -> ComplianceResult:
        if chapter_context is not None:
            return await self.checker.check_with_context(text, chapter_context)
        return self.checker.check(text)

    async def run(
        self,
        text: str,
        initial_violations: Optional[Sequence[Violation]] = None,
        chapter_context: Optional[ChapterContext] = None,
    ) -> CorrectionResult:
        """Correct ``text`` until it passes the checker or attempts run out.

        ``initial_violations`` (e.g. from an external detector) are added to
        the first check's violations, minus any the check already reported
        with the same kind and context. A text the checker already passes is
        returned untouched unless ``initial_violations`` adds one the check
        missed. On exhaustion the last corrected text is returned, never the
        input.
        """
        state = CorrectionState.CHECK
        current = text
        violations: tuple[Violation, ...] = ()
        original: tuple[Violation, ...] = ()
        attempts = 0
        tokens = 0

        while state not in TERMINAL_STATES:
            if state is CorrectionState.CHECK:
                result = await self._check(current, chapter_context)
                seen = {(v.kind, v.context) for v in result.violations}
                extra = tuple(v for v in initial_violations or () if (v.kind, v.context) not in seen)
                violations = tuple(result.violations) + extra
                original = violations
                state = transition(state, result.is_compliant and not extra, attempts, self.max_attempts)
            elif state is CorrectionState.CORRECT:
                attempts += 1
                output = await self.corrector.correct(current, violations, chapter_context)
                tokens += output.tokens_used
                current = output.corrected_text
                state = transition(state, False, attempts, self.max_attempts)
            else:
                result = await self._check(current, chapter_context)
                violations = tuple(result.violations)
                logger.debug(
                    f"Correction attempt {attempts}/{self.max_attempts}: "
                    f"score={result.score:.2f}, {len(violations)} violation(s)"
                )
                state = transition(state, result.is_compliant, attempts, self.max_attempts)

        if state is CorrectionState.SUCCEEDED:
            if attempts:
                logger.info(f"Correction succeeded after {attempts} attempt(s)")
            return CorrectionResult(
                success=True,
                final_text=current,
                attempts=attempts,
                total_tokens_used=tokens,
                final_compliance=result,
            )

        logger.warning(f"Correction exhausted after {attempts} attempt(s), {len(violations)} violation(s) remain")
        return CorrectionResult(
            success=False,
            final_text=current,
            attempts=attempts,
            total_tokens_used=tokens,
            original_violations=original,
            final_compliance=result,
        )

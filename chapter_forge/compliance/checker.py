"""Aggregates compliance rules into a single scored verdict."""

import asyncio
from typing import Optional, Sequence

from loguru import logger

from ..config import ComplianceConfig
from ..llm.client import LLMClient
from ..models import ChapterContext, ComplianceResult, Violation
from ..protocols import AsyncComplianceRule, ComplianceRule
from ..utils.text import count_sentences
from .rules import ChapterVariationRule, ForbiddenWordsRule, MarkdownContaminationRule, RhythmCheckRule

COMPLIANCE_THRESHOLD = 0.75


def calculate_score(text: str, violations: Sequence[Violation]) -> float:
    """1.0 with no violations, otherwise falls by 0.5 per violation per sentence.

    Rounded to two decimals and floored at 0.
    """
    if not violations:
        return 1.0
    per_sentence = len(violations) / count_sentences(text)
    return round(max(0.0, 1 - per_sentence * 0.5), 2)


class ComplianceChecker:
    def __init__(
        self,
        rules: Sequence[ComplianceRule],
        async_rules: Sequence[AsyncComplianceRule] = (),
        threshold: float = COMPLIANCE_THRESHOLD,
    ):
        self.rules = list(rules)
        self.async_rules = list(async_rules)
        self.threshold = threshold

    @classmethod
    def from_config(cls, config: ComplianceConfig, llm: Optional[LLMClient] = None) -> "ComplianceChecker":
        rules: list[ComplianceRule] = []
        if config.forbidden_words:
            rules.append(ForbiddenWordsRule(config.forbidden_words))
        rules.append(RhythmCheckRule(config.max_sentence_length, config.min_short_sentence_ratio))
        if config.check_markdown:
            rules.append(MarkdownContaminationRule())

        async_rules: list[AsyncComplianceRule] = []
        if config.chapter_variation and llm is not None:
            async_rules.append(ChapterVariationRule(llm))
        return cls(rules, async_rules, threshold=config.threshold)

    def _result(self, text: str, violations: list[Violation]) -> ComplianceResult:
        score = calculate_score(text, violations)
        result = ComplianceResult(
            is_compliant=score >= self.threshold,
            score=score,
            violations=tuple(violations),
        )
        logger.debug(f"Compliance: score={score:.2f}, {len(violations)} violation(s)")
        return result

    def _sync_violations(self, text: str) -> list[Violation]:
        violations = []
        for rule in self.rules:
            violations.extend(rule.check(text))
        return violations

    def check(self, text: str) -> ComplianceResult:
        """Run the synchronous rules only."""
        return self._result(text, self._sync_violations(text))

    async def check_with_context(
        self, text: str, chapter_context: Optional[ChapterContext] = None
    ) -> ComplianceResult:
        """Run every rule; async rules run concurrently and see the chapter context."""
        violations = self._sync_violations(text)
        if self.async_rules:
            batches = await asyncio.gather(*(r.check(text, chapter_context) for r in self.async_rules))
            for batch in batches:
                violations.extend(batch)
        return self._result(text, violations)

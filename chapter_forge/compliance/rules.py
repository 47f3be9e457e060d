"""Compliance rules. Each rule returns every violation it finds; none raise."""

import re
from typing import Iterable, Optional

from loguru import logger

from ..agents.base import BaseAgent
from ..llm.client import LLMClient
from ..models import ChapterContext, Position, Severity, Violation
from ..parsing import Err
from ..schemas import ChapterVariationResponse
from ..utils.text import excerpt_around, truncate_text

_MARKDOWN_PATTERNS = (
    (re.compile(r"\*\*[^*]+\*\*"), "bold (**...**)"),
    (re.compile(r"(?<!\*)\*(?!\*)[^*\n]+\*(?!\*)"), "italic (*...*)"),
    (re.compile(r"`[^`\n]+`"), "inline code (`...`)"),
    (re.compile(r"^```\s*\w*$", re.MULTILINE), "code block (```)"),
    (re.compile(r"^#{1,6}\s", re.MULTILINE), "heading (#)"),
)

_SENTENCE = re.compile(r"[^。！？.!?「」\n]+[。！？.!?]+")
SHORT_SENTENCE_CHARS = 20


class ForbiddenWordsRule:
    name = "forbidden_words"

    def __init__(self, forbidden_words: Iterable[str]):
        self.forbidden_words = [w for w in forbidden_words if w]

    def check(self, text: str) -> list[Violation]:
        violations = []
        if not text:
            return violations
        for word in self.forbidden_words:
            index = text.find(word)
            while index != -1:
                end = index + len(word)
                violations.append(
                    Violation(
                        kind="forbidden_word",
                        position=Position(index, end),
                        context=excerpt_around(text, index, end),
                        rule=f'Forbidden word: "{word}"',
                    )
                )
                index = text.find(word, index + 1)
        return violations


class MarkdownContaminationRule:
    name = "markdown_contamination"

    def check(self, text: str) -> list[Violation]:
        violations = []
        for pattern, label in _MARKDOWN_PATTERNS:
            for m in pattern.finditer(text or ""):
                violations.append(
                    Violation(
                        kind="markdown_contamination",
                        position=Position(m.start(), m.end()),
                        context=excerpt_around(text, m.start(), m.end()),
                        rule=f"Markdown syntax detected: {label}",
                    )
                )
        return violations


def split_sentences(text: str) -> list[tuple[str, int]]:
    """Split prose into (sentence, offset) pairs, skipping dialogue brackets."""
    results = []
    for m in _SENTENCE.finditer(text or ""):
        stripped = m.group(0).strip()
        if stripped:
            results.append((stripped, m.start()))
    return results


class RhythmCheckRule:
    """Flags overlong sentences and prose with too few short sentences."""

    name = "rhythm_check"

    def __init__(self, max_sentence_length: int = 100, min_short_sentence_ratio: float = 0.3):
        self.max_sentence_length = max_sentence_length
        self.min_short_sentence_ratio = min_short_sentence_ratio

    def check(self, text: str) -> list[Violation]:
        violations = []
        sentences = split_sentences(text)
        if not sentences:
            return violations

        for sentence, offset in sentences:
            if len(sentence) > self.max_sentence_length:
                violations.append(
                    Violation(
                        kind="sentence_too_long",
                        position=Position(offset, offset + len(sentence)),
                        context=sentence[:60] + "...",
                        rule=f"Sentence exceeds {self.max_sentence_length} characters ({len(sentence)})",
                        severity=Severity.WARNING,
                    )
                )

        short = sum(1 for s, _ in sentences if len(s) <= SHORT_SENTENCE_CHARS)
        ratio = short / len(sentences)
        if ratio < self.min_short_sentence_ratio and len(sentences) >= 5:
            violations.append(
                Violation(
                    kind="short_sentence_ratio",
                    position=Position(0, min(len(text), 100)),
                    context=f"Short sentences: {ratio:.0%} (minimum {self.min_short_sentence_ratio:.0%})",
                    rule=f"Too few short sentences (<= {SHORT_SENTENCE_CHARS} characters); vary the rhythm",
                    severity=Severity.WARNING,
                )
            )
        return violations


class ChapterVariationRule(BaseAgent):
    """LLM check that a chapter does not replay the previous one's beats."""

    name = "chapter_variation"
    template = "chapter_variation"

    def __init__(self, llm: LLMClient, max_chars: int = 6000):
        super().__init__("ChapterVariation", llm)
        self.max_chars = max_chars

    async def check(self, text: str, chapter_context: Optional[ChapterContext] = None) -> list[Violation]:
        if chapter_context is None or not chapter_context.previous_chapter_texts:
            return []

        previous = chapter_context.previous_chapter_texts[-1]
        result, _ = await self.call_structured(
            {
                "previous_chapters": truncate_text(previous, self.max_chars),
                "text": truncate_text(text, self.max_chars),
            },
            ChapterVariationResponse,
            temperature=1.0,
        )
        if isinstance(result, Err):
            logger.warning(f"Chapter variation output unusable ({result.message}), skipping rule")
            return []

        violations = []
        for rep in result.value.repetitions:
            start = text.find(rep.context) if rep.context else -1
            position = Position(start, start + len(rep.context)) if start >= 0 else Position(0, 0)
            violations.append(
                Violation(
                    kind="chapter_variation",
                    position=position,
                    context=rep.context,
                    rule=rep.rule,
                    severity=Severity(rep.severity),
                )
            )
        return violations

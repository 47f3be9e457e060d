import asyncio
import json

from chapter_forge.compliance import (
    ChapterVariationRule,
    ComplianceChecker,
    ForbiddenWordsRule,
    MarkdownContaminationRule,
    RhythmCheckRule,
    calculate_score,
    split_sentences,
)
from chapter_forge.config import ComplianceConfig
from chapter_forge.models import ChapterContext, Position, Severity, Violation
from tests.conftest import FakeLLM


def _violation(kind="forbidden_word", context="x"):
    return Violation(kind=kind, position=Position(0, 1), context=context, rule="r")


def test_forbidden_words_reports_every_occurrence():
    text = "A bad day. Another bad one."
    violations = ForbiddenWordsRule(["bad", "missing"]).check(text)

    assert [v.position for v in violations] == [Position(2, 5), Position(19, 22)]
    assert all(v.kind == "forbidden_word" for v in violations)
    assert all(v.severity == Severity.ERROR for v in violations)
    assert violations[0].rule == 'Forbidden word: "bad"'
    assert "bad" in violations[0].context


def test_forbidden_words_ignores_empty_entries():
    assert ForbiddenWordsRule(["", "bad"]).check("nothing here") == []
    assert ForbiddenWordsRule(["bad"]).check("") == []


def test_score_without_violations_is_perfect():
    assert calculate_score("One. Two.", []) == 1.0


def test_score_halves_per_violation_per_sentence():
    assert calculate_score("One sentence.", [_violation()]) == 0.5
    assert calculate_score("One sentence.", [_violation(), _violation()]) == 0.0
    assert calculate_score("One sentence.", [_violation()] * 5) == 0.0


def test_checker_threshold_is_inclusive():
    checker = ComplianceChecker([ForbiddenWordsRule(["bad"])])

    result = checker.check("A bad day. Then more.")

    assert result.score == 0.75
    assert result.is_compliant
    assert len(result.violations) == 1


def test_checker_flags_dense_violations():
    result = ComplianceChecker([ForbiddenWordsRule(["bad"])]).check("bad bad.")
    assert result.score == 0.0
    assert not result.is_compliant


def test_markdown_bold_is_not_also_italic():
    violations = MarkdownContaminationRule().check("He was **very** tired.")
    assert len(violations) == 1
    assert "bold" in violations[0].rule
    assert violations[0].kind == "markdown_contamination"


def test_markdown_heading_and_fence():
    text = "# Chapter One\n```\nThe rain began.\n```"
    rules = [v.rule for v in MarkdownContaminationRule().check(text)]
    assert any("heading" in r for r in rules)
    assert sum("code block" in r for r in rules) == 2


def test_plain_prose_has_no_markdown():
    assert MarkdownContaminationRule().check("Rain fell. She waited, counting.") == []


def test_split_sentences_offsets():
    assert split_sentences("One. Two!") == [("One.", 0), ("Two!", 4)]


def test_rhythm_flags_long_sentence():
    text = "word " * 30 + "end."
    violations = RhythmCheckRule(max_sentence_length=100).check(text)
    assert [v.kind for v in violations] == ["sentence_too_long"]
    assert violations[0].severity == Severity.WARNING


def test_rhythm_flags_low_short_sentence_ratio():
    text = "The lighthouse keeper climbed the stairs again. " * 5
    violations = RhythmCheckRule().check(text)
    assert [v.kind for v in violations] == ["short_sentence_ratio"]


def test_rhythm_ratio_needs_five_sentences():
    text = "The lighthouse keeper climbed the stairs again. " * 4
    assert RhythmCheckRule().check(text) == []


class StubAsyncRule:
    name = "stub"

    def __init__(self):
        self.contexts = []

    async def check(self, text, chapter_context=None):
        self.contexts.append(chapter_context)
        return [_violation(kind="chapter_variation", context="echo")]


def test_check_with_context_merges_async_rules():
    stub = StubAsyncRule()
    checker = ComplianceChecker([ForbiddenWordsRule(["bad"])], async_rules=[stub])
    ctx = ChapterContext(chapter_index=1, previous_chapter_texts=("Before.",))

    sync_only = checker.check("A bad day. Fine. Fine. Fine.")
    merged = asyncio.run(checker.check_with_context("A bad day. Fine. Fine. Fine.", ctx))

    assert len(sync_only.violations) == 1
    assert [v.kind for v in merged.violations] == ["forbidden_word", "chapter_variation"]
    assert merged.score == 0.75
    assert stub.contexts == [ctx]


def test_from_config_builds_rules():
    checker = ComplianceChecker.from_config(ComplianceConfig(forbidden_words=["x"], threshold=0.6))
    assert [type(r) for r in checker.rules] == [ForbiddenWordsRule, RhythmCheckRule, MarkdownContaminationRule]
    assert checker.async_rules == []
    assert checker.threshold == 0.6


def test_from_config_minimal_and_with_llm():
    config = ComplianceConfig(check_markdown=False)
    assert [type(r) for r in ComplianceChecker.from_config(config).rules] == [RhythmCheckRule]

    checker = ComplianceChecker.from_config(config, llm=FakeLLM())
    assert [type(r) for r in checker.async_rules] == [ChapterVariationRule]


def test_chapter_variation_noop_without_history():
    llm = FakeLLM()
    rule = ChapterVariationRule(llm)
    assert asyncio.run(rule.check("Text.")) == []
    assert asyncio.run(rule.check("Text.", ChapterContext(chapter_index=0))) == []
    assert llm.calls == []


def test_chapter_variation_locates_repetition():
    raw = json.dumps({"repetitions": [
        {"context": "The storm came", "rule": "Same opening as chapter 1", "severity": "error"},
        {"context": "not in the text", "rule": "Echoed image"},
    ]})
    llm = FakeLLM([raw])
    ctx = ChapterContext(chapter_index=1, previous_chapter_texts=("Old one.", "The storm came at noon."))

    violations = asyncio.run(ChapterVariationRule(llm).check("Again. The storm came back.", ctx))

    assert violations[0].position == Position(7, 21)
    assert violations[0].severity == Severity.ERROR
    assert violations[0].kind == "chapter_variation"
    assert violations[1].position == Position(0, 0)
    assert violations[1].severity == Severity.WARNING
    assert "The storm came at noon." in llm.calls[0]["prompt"]
    assert "Old one." not in llm.calls[0]["prompt"]


def test_chapter_variation_skips_unusable_output():
    ctx = ChapterContext(chapter_index=1, previous_chapter_texts=("Before.",))
    assert asyncio.run(ChapterVariationRule(FakeLLM(["no idea"])).check("Text.", ctx)) == []

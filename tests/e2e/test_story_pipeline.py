"""End-to-end story generation: chapters, cross-chapter state and resume."""

import asyncio
from dataclasses import replace

import pytest

from chapter_forge.errors import ResumeError
from chapter_forge.pipeline import StoryRunner
from chapter_forge.storage import CheckpointManager, JsonlCheckpointStore
from tests.conftest import FakeExtractor, make_deps


@pytest.fixture
def checkpoints(tmp_path):
    return CheckpointManager(JsonlCheckpointStore(tmp_path / "checkpoints"))


def test_two_chapter_story(four_writers, meter, checkpoints):
    extractor = FakeExtractor()
    deps = make_deps(four_writers, forbidden=("absent",), token_counter=meter)
    runner = StoryRunner(deps, checkpoints, extractor=extractor)
    stages = []

    result = asyncio.run(
        runner.generate_story(
            "story-1",
            ["The storm arrives.", "The morning after."],
            progress=lambda msg, ch, total, stage: stages.append((ch, stage)),
        )
    )

    assert [c.index for c in result.chapters] == [0, 1]
    assert all(c.champion == "writer_2" for c in result.chapters)
    assert result.total_tokens_used == 40
    assert result.average_compliance_score == 1.0
    assert result.average_reader_score is None
    assert result.state.chapter_summaries[-1].summary == "Summary of chapter 2"
    assert result.text.count("The bad storm came over the hills.") == 2

    first_prompt, second_prompt = four_writers[0].prompts
    assert first_prompt == "The storm arrives."
    assert second_prompt.startswith("The morning after.")
    assert "Previous chapters" in second_prompt
    assert "Summary of chapter 1" in second_prompt
    assert "Open indoors this time" in second_prompt
    assert [i for _, i in extractor.calls] == [0, 1]

    assert stages == [(1, "pipeline"), (1, "state"), (1, "done"), (2, "pipeline"), (2, "state"), (2, "done")]
    latest = checkpoints.get_latest_checkpoint("story-1")
    assert latest.phase == "chapter_done"
    assert latest.progress == {"completed_chapters": 2, "total_chapters": 2}


class FlakyStage:
    """Writes one line per chapter and fails once on the chapter named in ``fail_on``."""

    def __init__(self, fail_on: str):
        self.fail_on = fail_on
        self.prompts = []

    async def __call__(self, ctx):
        self.prompts.append(ctx.prompt)
        if self.fail_on and ctx.prompt.startswith(self.fail_on):
            self.fail_on = ""
            raise RuntimeError("connection reset")
        return replace(ctx, text=f"Text for {ctx.prompt.splitlines()[0]}", champion="writer_1", tokens_used=5)


def test_resume_continues_after_last_finished_chapter(four_writers, checkpoints):
    extractor = FakeExtractor()
    stage = FlakyStage(fail_on="Chapter two")
    deps = make_deps(four_writers)
    prompts = ["Chapter one", "Chapter two", "Chapter three"]

    with pytest.raises(RuntimeError, match="connection reset"):
        asyncio.run(StoryRunner(deps, checkpoints, extractor, stage).generate_story("story-2", prompts))

    assert checkpoints.get_latest_checkpoint("story-2").progress["completed_chapters"] == 1

    result = asyncio.run(StoryRunner(deps, checkpoints, extractor, stage).resume("story-2"))

    assert [c.text for c in result.chapters] == [
        "Text for Chapter one",
        "Text for Chapter two",
        "Text for Chapter three",
    ]
    assert result.total_tokens_used == 15
    assert [i for _, i in extractor.calls] == [0, 1, 2]
    assert "Summary of chapter 1" in stage.prompts[-2]
    assert len(result.state.chapter_summaries) == 3
    assert checkpoints.get_latest_checkpoint("story-2").progress["completed_chapters"] == 3


def test_resume_of_finished_story_runs_nothing(four_writers, checkpoints):
    stage = FlakyStage(fail_on="")
    runner = StoryRunner(make_deps(four_writers), checkpoints, stage=stage)
    asyncio.run(runner.generate_story("story-3", ["Only chapter"]))

    result = asyncio.run(runner.resume("story-3"))

    assert len(stage.prompts) == 1
    assert result.chapters[0].text == "Text for Only chapter"


def test_resume_without_checkpoint(four_writers, checkpoints):
    runner = StoryRunner(make_deps(four_writers), checkpoints)
    with pytest.raises(ResumeError, match="No checkpoint"):
        asyncio.run(runner.resume("never-started"))

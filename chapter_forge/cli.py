import asyncio
import uuid
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.table import Table

from .agents import ChapterStateExtractor
from .batch import BatchJob, BatchRunner
from .config import Config
from .errors import ChapterForgeError
from .llm import LLMClient
from .pipeline import StoryResult, StoryRunner, build_deps
from .storage import CheckpointManager, JsonlCheckpointStore
from .utils.logger import setup_logger

console = Console()


def build_runner(config: Config) -> StoryRunner:
    """Story runner backed by the configured LLM endpoint and JSONL checkpoints."""
    llm = LLMClient(config.llm)
    return StoryRunner(
        build_deps(config, llm),
        CheckpointManager(JsonlCheckpointStore(config.checkpoint.directory)),
        extractor=ChapterStateExtractor(llm),
    )


def load_jobs(path: Path) -> list[BatchJob]:
    """Read a YAML mapping of task id to a list of chapter prompts."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise click.ClickException(f"{path} must map task ids to lists of chapter prompts")
    jobs = []
    for task_id, prompts in data.items():
        if isinstance(prompts, str):
            prompts = [prompts]
        jobs.append(BatchJob(task_id=str(task_id), chapter_prompts=tuple(prompts)))
    return jobs


def print_story(result: StoryResult):
    table = Table(title=f"Task {result.task_id}")
    table.add_column("Chapter", justify="right")
    table.add_column("Champion")
    table.add_column("Chars", justify="right")
    table.add_column("Compliance", justify="right")
    table.add_column("Reader", justify="right")
    table.add_column("Tokens", justify="right")
    for c in result.chapters:
        table.add_row(
            str(c.index + 1),
            c.champion or "-",
            str(len(c.text)),
            f"{c.compliance_score:.2f}",
            f"{c.reader_score:.2f}" if c.reader_score is not None else "-",
            str(c.tokens_used),
        )
    console.print(table)
    console.print(f"Total tokens: {result.total_tokens_used}")


def write_output(result: StoryResult, output: Optional[str]):
    if not output:
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result.text, encoding="utf-8")
    console.print(f"Story written to {path}")


@click.group()
@click.option('--config', '-c', type=click.Path(), default='config.yaml',
              help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool):
    """chapter-forge - tournament-based chapter generation."""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        ctx.obj['config'] = Config.from_yaml(config_path)
    else:
        ctx.obj['config'] = Config()

    log_level = "DEBUG" if verbose else ctx.obj['config'].log_level
    logger = setup_logger(log_level)
    ctx.obj['logger'] = logger

    if config_path.exists():
        logger.debug(f"Config loaded from: {config_path}")


@cli.command()
@click.argument('prompts', nargs=-1)
@click.option('--file', '-f', 'prompts_file', type=click.Path(exists=True),
              help='Text file with one chapter prompt per line')
@click.option('--task-id', '-t', default=None, help='Task id used for checkpoints')
@click.option('--output', '-o', type=click.Path(), help='Write the story text here')
@click.pass_context
def generate(ctx: click.Context, prompts: tuple, prompts_file: str, task_id: str, output: str):
    """Generate a story, one chapter per prompt."""
    config = ctx.obj['config']
    logger = ctx.obj['logger']

    chapter_prompts = list(prompts)
    if prompts_file:
        lines = Path(prompts_file).read_text(encoding="utf-8").splitlines()
        chapter_prompts.extend(line.strip() for line in lines if line.strip())
    if not chapter_prompts:
        raise click.UsageError("Give at least one chapter prompt or --file")

    task_id = task_id or uuid.uuid4().hex[:12]
    logger.info(f"Task {task_id}: {len(chapter_prompts)} chapter(s)")

    try:
        runner = build_runner(config)
        result = asyncio.run(runner.generate_story(task_id, chapter_prompts))
    except ChapterForgeError as e:
        logger.error(f"Generation failed: {e}")
        raise click.ClickException(str(e))

    print_story(result)
    write_output(result, output)


@cli.command()
@click.argument('task_id')
@click.option('--output', '-o', type=click.Path(), help='Write the story text here')
@click.pass_context
def resume(ctx: click.Context, task_id: str, output: str):
    """Resume an interrupted task from its latest checkpoint."""
    config = ctx.obj['config']
    logger = ctx.obj['logger']

    try:
        runner = build_runner(config)
        result = asyncio.run(runner.resume(task_id))
    except ChapterForgeError as e:
        logger.error(f"Resume failed: {e}")
        raise click.ClickException(str(e))

    print_story(result)
    write_output(result, output)


@cli.command()
@click.argument('prompts_file', type=click.Path(exists=True))
@click.option('--workers', '-w', type=int, default=None, help='Override batch.max_workers')
@click.option('--log-dir', type=click.Path(), default=None, help='Per-task log directory')
@click.pass_context
def batch(ctx: click.Context, prompts_file: str, workers: int, log_dir: str):
    """Generate several stories concurrently from a YAML file."""
    config = ctx.obj['config']
    logger = ctx.obj['logger']

    jobs = load_jobs(Path(prompts_file))
    runner = BatchRunner(
        lambda job: build_runner(config),
        max_workers=workers or config.batch.max_workers,
        log_dir=Path(log_dir) if log_dir else None,
    )
    result = asyncio.run(runner.run(jobs))

    table = Table(title="Batch")
    table.add_column("Task")
    table.add_column("Status")
    table.add_column("Tokens", justify="right")
    table.add_column("Error")
    for o in result.outcomes:
        table.add_row(o.task_id, o.status, str(o.tokens_used), o.error or "")
    console.print(table)

    logger.info(
        f"Batch done: {result.completed} completed, {result.failed} failed, "
        f"{result.total_tokens_used} tokens"
    )
    if result.failed and not result.completed:
        raise click.ClickException("All batch tasks failed")


@cli.command(name='init-config')
@click.argument('path', type=click.Path())
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def init_config(path: str, force: bool):
    """Write a default configuration file."""
    target = Path(path)
    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force to overwrite)")
    target.parent.mkdir(parents=True, exist_ok=True)
    Config().to_yaml(target)
    click.echo(f"Wrote default configuration to {target}")


def main():
    cli()


if __name__ == '__main__':
    main()

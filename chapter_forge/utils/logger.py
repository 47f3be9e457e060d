import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[task_id]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[task_id]} | {name}:{function}:{line} - {message}"

_configured = False
_task_sinks: dict[str, int] = {}


def setup_logger(log_level: str = "INFO", log_file: Optional[Path] = None):
    """Console logging plus an optional rotating file.

    Records outside a ``logger.contextualize(task_id=...)`` block show ``-``
    as their task id.
    """
    global _configured

    if _configured and log_file is None:
        return logger

    logger.remove()
    logger.configure(extra={"task_id": "-"})
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=True)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, format=FILE_FORMAT, level="DEBUG", rotation="10 MB", retention="7 days")

    _configured = True
    return logger


def add_task_log(task_id: str, log_dir: Path) -> Path:
    """Route DEBUG records bound with ``task_id`` to ``log_dir/<task_id>.log``."""
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"{task_id}.log"
    if task_id not in _task_sinks:
        _task_sinks[task_id] = logger.add(
            path,
            format=FILE_FORMAT,
            level="DEBUG",
            filter=lambda record: record["extra"].get("task_id") == task_id,
        )
    return path


def remove_task_log(task_id: str) -> None:
    sink_id = _task_sinks.pop(task_id, None)
    if sink_id is not None:
        logger.remove(sink_id)

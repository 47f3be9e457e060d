from .base import BaseAgent
from .corrector import CorrectorAgent
from .judge import JudgeAgent
from .reader_evaluator import ReaderEvaluator
from .reader_jury import ReaderJury
from .retaker import RetakeAgent
from .state_extractor import ChapterStateExtractor
from .writer import WriterAgent

__all__ = [
    "BaseAgent",
    "CorrectorAgent",
    "JudgeAgent",
    "ReaderEvaluator",
    "ReaderJury",
    "RetakeAgent",
    "ChapterStateExtractor",
    "WriterAgent",
]

"""Outputs of the agents that rewrite text: corrector and retaker."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CorrectionOutput:
    corrected_text: str
    tokens_used: int = 0


@dataclass(frozen=True)
class RetakeResult:
    retaken_text: str
    tokens_used: int = 0


@dataclass(frozen=True)
class RetakeLoopResult:
    final_text: str
    retake_count: int
    improved: bool
    final_score: Optional[float] = None
    total_tokens_used: int = 0

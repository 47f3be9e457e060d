"""Compliance violations and correction outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Position:
    start: int
    end: int


@dataclass(frozen=True)
class Violation:
    kind: str
    position: Position
    context: str
    rule: str
    severity: Severity = Severity.ERROR


@dataclass(frozen=True)
class ComplianceResult:
    is_compliant: bool
    score: float
    violations: tuple[Violation, ...] = ()


@dataclass(frozen=True)
class CorrectionResult:
    success: bool
    final_text: str
    attempts: int
    total_tokens_used: int = 0
    original_violations: Optional[tuple[Violation, ...]] = None
    final_compliance: Optional[ComplianceResult] = None

"""Pydantic models for the raw JSON each agent is asked to return."""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class JudgeResponse(BaseModel):
    winner: Literal["A", "B"]
    reasoning: str = ""
    scores: dict[str, dict[str, Any]] = Field(default_factory=dict)
    praised_excerpts: Optional[dict[str, list[str]]] = None
    weaknesses: Optional[dict[str, list[dict[str, Any]]]] = None
    axis_comments: Optional[list[dict[str, Any]]] = None
    section_analysis: Optional[list[dict[str, Any]]] = None

    @field_validator("winner", mode="before")
    @classmethod
    def normalize_winner(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v


class ImprovementActionRaw(BaseModel):
    section: str = ""
    type: str = "expression"
    description: str
    source: str = ""
    priority: Literal["high", "medium", "low"] = "medium"


class ExpressionSourceRaw(BaseModel):
    writer_id: str
    expressions: list[str] = Field(default_factory=list)
    context: str = ""


class ImprovementPlanResponse(BaseModel):
    champion_assessment: str = ""
    preserve_elements: list[str] = Field(default_factory=list)
    actions: list[ImprovementActionRaw] = Field(default_factory=list)
    structural_changes: Optional[list[str]] = None
    expression_sources: list[ExpressionSourceRaw] = Field(default_factory=list)


class ReaderFeedbackRaw(BaseModel):
    strengths: str = ""
    weaknesses: str = ""
    suggestion: str = ""


class ReaderEvaluationResponse(BaseModel):
    category_scores: dict[str, Any] = Field(default_factory=dict)
    feedback: Union[ReaderFeedbackRaw, str] = Field(default_factory=ReaderFeedbackRaw)


class CharacterStateRaw(BaseModel):
    character_name: str
    emotional_state: str = ""
    knowledge_gained: list[str] = Field(default_factory=list)
    relationship_changes: list[str] = Field(default_factory=list)
    physical_state: Optional[str] = None


class MotifOccurrenceRaw(BaseModel):
    motif: str
    count: int = Field(default=1, ge=0)


class ChapterStateResponse(BaseModel):
    character_states: list[CharacterStateRaw] = Field(default_factory=list)
    motif_occurrences: list[MotifOccurrenceRaw] = Field(default_factory=list)
    next_variation_hint: str = ""
    chapter_summary: str = ""
    dominant_tone: str = ""
    peak_intensity: int = 3


class RepetitionRaw(BaseModel):
    context: str
    rule: str = "Repeats material from an earlier chapter"
    severity: Literal["warning", "error"] = "warning"


class ChapterVariationResponse(BaseModel):
    repetitions: list[RepetitionRaw] = Field(default_factory=list)

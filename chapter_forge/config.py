import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class LLMConfig(BaseModel):
    api_key: str = Field(default="")
    base_url: Optional[str] = Field(default=None)
    model: str = Field(default="gpt-4o-mini")
    temperature: float = Field(default=0.8, ge=0, le=2)
    max_tokens: int = Field(default=4096, gt=0)

    def resolved_api_key(self) -> str:
        return self.api_key or os.environ.get("CHAPTER_FORGE_API_KEY", "")


class WriterPersona(BaseModel):
    id: str
    focus: str = Field(default="")
    temperature: float = Field(default=0.9, ge=0, le=2)


def _default_writers() -> list[WriterPersona]:
    return [
        WriterPersona(id="writer_1", focus="restrained, precise prose", temperature=0.7),
        WriterPersona(id="writer_2", focus="sensory detail and atmosphere", temperature=0.9),
        WriterPersona(id="writer_3", focus="dialogue-driven scenes", temperature=1.0),
        WriterPersona(id="writer_4", focus="interior voice and psychology", temperature=1.1),
    ]


class TournamentConfig(BaseModel):
    writers: list[WriterPersona] = Field(default_factory=_default_writers)

    @field_validator("writers")
    @classmethod
    def writers_form_a_bracket(cls, v: list[WriterPersona]) -> list[WriterPersona]:
        n = len(v)
        if n < 2 or n & (n - 1):
            raise ValueError(f"writer count must be a power of two >= 2, got {n}")
        return v


class ComplianceConfig(BaseModel):
    threshold: float = Field(default=0.75, ge=0, le=1)
    forbidden_words: list[str] = Field(default_factory=list)
    max_sentence_length: int = Field(default=100, gt=0)
    min_short_sentence_ratio: float = Field(default=0.3, ge=0, le=1)
    check_markdown: bool = Field(default=True)
    chapter_variation: bool = Field(default=True)


class CorrectionConfig(BaseModel):
    max_attempts: int = Field(default=3, gt=0)


class RetakeConfig(BaseModel):
    max_retakes: int = Field(default=2, ge=0)
    min_score_threshold: float = Field(default=0.8, ge=0, le=1)
    min_voice_threshold: float = Field(default=0.7, ge=0, le=1)


class PersonaWeights(BaseModel):
    style: float = Field(default=0.2, ge=0)
    plot: float = Field(default=0.2, ge=0)
    character: float = Field(default=0.2, ge=0)
    worldbuilding: float = Field(default=0.2, ge=0)
    readability: float = Field(default=0.2, ge=0)


class ReaderPersonaConfig(BaseModel):
    id: str
    name: str
    description: str = Field(default="")
    preferences: list[str] = Field(default_factory=list)
    weights: PersonaWeights = Field(default_factory=PersonaWeights)


def _default_personas() -> list[ReaderPersonaConfig]:
    return [
        ReaderPersonaConfig(
            id="literary",
            name="Literary critic",
            description="Reads for voice, rhythm and precision of language.",
            preferences=["distinctive prose", "subtext"],
            weights=PersonaWeights(style=0.35, plot=0.15, character=0.25, worldbuilding=0.05, readability=0.2),
        ),
        ReaderPersonaConfig(
            id="genre",
            name="Genre reader",
            description="Reads for momentum, stakes and payoff.",
            preferences=["clear stakes", "forward motion"],
            weights=PersonaWeights(style=0.1, plot=0.35, character=0.2, worldbuilding=0.15, readability=0.2),
        ),
        ReaderPersonaConfig(
            id="casual",
            name="Casual reader",
            description="Reads for ease and emotional pull.",
            preferences=["readability", "sympathetic characters"],
            weights=PersonaWeights(style=0.1, plot=0.2, character=0.25, worldbuilding=0.05, readability=0.4),
        ),
    ]


class ReaderJuryConfig(BaseModel):
    passing_threshold: float = Field(default=0.80, ge=0, le=1)
    personas: list[ReaderPersonaConfig] = Field(default_factory=_default_personas)


class SynthesisConfig(BaseModel):
    mode: Literal["simple", "plan"] = Field(default="simple")


class CheckpointConfig(BaseModel):
    directory: Path = Field(default=Path("data/checkpoints"))


class BatchConfig(BaseModel):
    max_workers: int = Field(default=2, gt=0)


class Config(BaseModel):
    llm: LLMConfig = Field(default_factory=LLMConfig)
    tournament: TournamentConfig = Field(default_factory=TournamentConfig)
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)
    correction: CorrectionConfig = Field(default_factory=CorrectionConfig)
    retake: RetakeConfig = Field(default_factory=RetakeConfig)
    reader_jury: ReaderJuryConfig = Field(default_factory=ReaderJuryConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    voice: str = Field(default="")
    log_level: str = Field(default="INFO")

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path):
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)

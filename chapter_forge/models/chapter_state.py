"""State carried from one chapter to the next."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional


class WearLevel(str, Enum):
    FRESH = "fresh"
    USED = "used"
    WORN = "worn"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class CharacterState:
    character_name: str
    emotional_state: str = ""
    knowledge_gained: tuple[str, ...] = ()
    relationship_changes: tuple[str, ...] = ()
    physical_state: Optional[str] = None


@dataclass(frozen=True)
class MotifWearEntry:
    motif: str
    usage_count: int
    last_used_chapter: int
    wear_level: WearLevel


@dataclass(frozen=True)
class MotifOccurrence:
    motif: str
    count: int


@dataclass(frozen=True)
class ChapterSummary:
    chapter_index: int
    summary: str
    dominant_tone: str = ""
    peak_intensity: int = 3


@dataclass(frozen=True)
class CrossChapterState:
    character_states: tuple[CharacterState, ...] = ()
    motif_wear: tuple[MotifWearEntry, ...] = ()
    variation_hint: Optional[str] = None
    chapter_summaries: tuple[ChapterSummary, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CrossChapterState":
        return cls(
            character_states=tuple(
                CharacterState(
                    character_name=c["character_name"],
                    emotional_state=c.get("emotional_state", ""),
                    knowledge_gained=tuple(c.get("knowledge_gained", ())),
                    relationship_changes=tuple(c.get("relationship_changes", ())),
                    physical_state=c.get("physical_state"),
                )
                for c in data.get("character_states", ())
            ),
            motif_wear=tuple(
                MotifWearEntry(
                    motif=m["motif"],
                    usage_count=m["usage_count"],
                    last_used_chapter=m["last_used_chapter"],
                    wear_level=WearLevel(m["wear_level"]),
                )
                for m in data.get("motif_wear", ())
            ),
            variation_hint=data.get("variation_hint"),
            chapter_summaries=tuple(
                ChapterSummary(**s) for s in data.get("chapter_summaries", ())
            ),
        )


@dataclass(frozen=True)
class ChapterStateExtraction:
    character_states: tuple[CharacterState, ...] = ()
    motif_occurrences: tuple[MotifOccurrence, ...] = ()
    next_variation_hint: str = ""
    chapter_summary: str = ""
    dominant_tone: str = ""
    peak_intensity: int = 3


def fallback_extraction() -> ChapterStateExtraction:
    """Zeroed extraction used when the extractor's output cannot be parsed."""
    return ChapterStateExtraction()


@dataclass(frozen=True)
class ChapterContext:
    chapter_index: int
    previous_chapter_texts: tuple[str, ...] = ()
    cross_chapter_state: Optional[CrossChapterState] = None

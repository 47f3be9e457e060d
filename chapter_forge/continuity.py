"""Cross-chapter state tracking.

Pure functions only. The state is rebuilt once per finished chapter and is
never touched while a chapter is in flight.
"""

from typing import Iterable, Sequence

from .models import (
    ChapterStateExtraction,
    ChapterSummary,
    CrossChapterState,
    MotifOccurrence,
    MotifWearEntry,
    WearLevel,
)


def create_initial_state() -> CrossChapterState:
    return CrossChapterState()


def calculate_wear_level(usage_count: int) -> WearLevel:
    if usage_count <= 1:
        return WearLevel.FRESH
    if usage_count <= 3:
        return WearLevel.USED
    if usage_count <= 5:
        return WearLevel.WORN
    return WearLevel.EXHAUSTED


def calculate_motif_wear(
    current: Sequence[MotifWearEntry],
    occurrences: Iterable[MotifOccurrence],
    chapter_index: int,
) -> tuple[MotifWearEntry, ...]:
    """Add this chapter's occurrences to the cumulative counts.

    Motifs absent from ``occurrences`` are carried forward unchanged.
    Insertion order is preserved: known motifs first, new ones appended.
    """
    wear = {entry.motif: entry for entry in current}
    for occ in occurrences:
        previous = wear.get(occ.motif)
        count = occ.count + (previous.usage_count if previous else 0)
        wear[occ.motif] = MotifWearEntry(
            motif=occ.motif,
            usage_count=count,
            last_used_chapter=chapter_index,
            wear_level=calculate_wear_level(count),
        )
    return tuple(wear.values())


def update_state(
    current: CrossChapterState,
    extraction: ChapterStateExtraction,
    chapter_index: int,
) -> CrossChapterState:
    # Character states are a full snapshot: the extractor re-emits every
    # tracked character, so the previous list is replaced, not merged.
    return CrossChapterState(
        character_states=tuple(extraction.character_states),
        motif_wear=calculate_motif_wear(current.motif_wear, extraction.motif_occurrences, chapter_index),
        variation_hint=extraction.next_variation_hint,
        chapter_summaries=current.chapter_summaries + (
            ChapterSummary(
                chapter_index=chapter_index,
                summary=extraction.chapter_summary,
                dominant_tone=extraction.dominant_tone,
                peak_intensity=extraction.peak_intensity,
            ),
        ),
    )


def format_state_for_prompt(state: CrossChapterState, max_summaries: int = 3) -> str:
    """Render the state as prompt context for the next chapter.

    Returns an empty string for the initial state.
    """
    parts = []

    if state.chapter_summaries:
        parts.append("## Previous chapters")
        for s in state.chapter_summaries[-max_summaries:]:
            tone = f" [tone: {s.dominant_tone}]" if s.dominant_tone else ""
            parts.append(f"- Ch{s.chapter_index + 1}{tone}: {s.summary}")

    if state.character_states:
        parts.append("\n## Characters (already known to the reader, do not re-introduce)")
        for c in state.character_states:
            line = f"- {c.character_name}"
            if c.emotional_state:
                line += f" [mood: {c.emotional_state}]"
            if c.physical_state:
                line += f" [body: {c.physical_state}]"
            parts.append(line)
            for fact in c.knowledge_gained:
                parts.append(f"  - knows: {fact}")
            for change in c.relationship_changes:
                parts.append(f"  - relationship: {change}")

    worn = [m for m in state.motif_wear if m.wear_level in (WearLevel.WORN, WearLevel.EXHAUSTED)]
    if worn:
        parts.append("\n## Motifs to avoid")
        for m in worn:
            parts.append(f"- {m.motif} (used {m.usage_count}x, {m.wear_level.value})")

    if state.variation_hint:
        parts.append(f"\n## Variation for this chapter\n{state.variation_hint}")

    return "\n".join(parts).strip()

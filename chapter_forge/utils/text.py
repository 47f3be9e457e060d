"""Text helpers shared by agents, rules and prompt builders."""

import json
import re
from typing import Iterator

_SENTENCE_END = re.compile(r"[。！？.!?]+")
_BOUNDARY = re.compile(r"(?:[.!?] |[。！？]|\n)")
_FENCED = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)


def count_sentences(text: str) -> int:
    """Count sentence terminator runs ("..." counts once). Never below 1."""
    return max(1, len(_SENTENCE_END.findall(text)))


def excerpt_around(text: str, start: int, end: int, margin: int = 20) -> str:
    """Return the slice of ``text`` around [start, end) padded by ``margin`` chars."""
    return text[max(0, start - margin):min(len(text), end + margin)]


def truncate_text(text: str, max_chars: int, slack: int = 200) -> str:
    """Cut ``text`` to about ``max_chars``, preferring a sentence boundary.

    The cut lands on the last boundary within ``slack`` characters before the
    limit; without one the text is cut hard at the limit. A trailing "..."
    marks the cut.
    """
    if len(text) <= max_chars:
        return text
    cut = max_chars
    for m in _BOUNDARY.finditer(text, max(0, max_chars - slack), max_chars):
        cut = m.end()
    return text[:cut] + "..."


def _close_brackets(fragment: str) -> str:
    """Append the closers for every bracket left open in ``fragment``."""
    closers = []
    in_string = escaped = False
    for ch in fragment:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{[":
            closers.append("}" if ch == "{" else "]")
        elif ch in "}]" and closers:
            closers.pop()
    return fragment + "".join(reversed(closers))


def _repair_truncated(fragment: str) -> Iterator[str]:
    """Yield shrinking, bracket-balanced prefixes of a cut-off JSON document."""
    for i in range(len(fragment) - 1, 0, -1):
        if fragment[i] in '}]"':
            yield _close_brackets(fragment[:i + 1].rstrip().rstrip(","))


def _candidates(text: str) -> Iterator[str]:
    fenced = _FENCED.search(text)
    if fenced:
        yield fenced.group(1)
    cleaned = text.strip()
    yield cleaned
    # Outermost structure, objects first since agents answer with objects
    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start, end = cleaned.find(open_ch), cleaned.rfind(close_ch)
        if start != -1 and end > start:
            yield cleaned[start:end + 1]
    for open_ch in "{[":
        start = cleaned.find(open_ch)
        if start != -1:
            yield from _repair_truncated(cleaned[start:])


def parse_json_response(text: str) -> dict | list:
    """Extract JSON from an LLM response that may contain fences, prose or a cut-off tail.

    Raises:
        ValueError: if no JSON value can be recovered from ``text``.
    """
    for candidate in _candidates(text):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, (dict, list)):
            return value
    raise ValueError(f"Could not parse JSON from response: {text[:200]}...")

"""Tagged parse step applied at every boundary where model output is interpreted.

``parse_structured`` never raises: it returns ``Ok(value)`` or ``Err(message)``
and the caller picks the documented fallback for the ``Err`` branch.
"""

from dataclasses import dataclass
from typing import Generic, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .utils.text import parse_json_response

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    message: str
    raw: str = ""


ParseResult = Union[Ok[T], Err]


def parse_structured(raw: str, schema: Type[M]) -> "ParseResult[M]":
    """Extract JSON from ``raw`` and validate it against ``schema``."""
    try:
        data = parse_json_response(raw or "")
    except ValueError as e:
        return Err(str(e), raw=raw or "")
    if not isinstance(data, dict):
        return Err(f"Expected a JSON object, got {type(data).__name__}", raw=raw)
    try:
        return Ok(schema.model_validate(data))
    except ValidationError as e:
        return Err(f"{schema.__name__} validation failed: {e.error_count()} error(s)", raw=raw)

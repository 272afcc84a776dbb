"""Schemas for the line-delimited JSON files and the one place that parses them.

Each line is validated independently against a pydantic model. What
happens to a line that fails (abort the whole file or skip the line) is
decided by ``on_error`` in :func:`parse_json_lines` and nowhere else.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterator, List, Literal, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import LabelingParseError

__all__ = [
    "OnError",
    "LabelingRecord",
    "TeacherRef",
    "TeachersRelationship",
    "Alignment",
    "AlignmentResponse",
    "iter_json_lines",
    "parse_json_lines",
    "parse_labeling",
    "describe_validation_error",
]

log = logging.getLogger(__name__)

OnError = Literal["raise", "skip"]

RecordT = TypeVar("RecordT", bound=BaseModel)


class LabelingRecord(BaseModel):
    """``{"idx": 5, "match": [[[0, 2], [1, 1]]]}``: ``match[label][group]`` is range encoded."""

    model_config = ConfigDict(strict=True)

    idx: int
    match: List[List[List[int]]]


class TeacherRef(BaseModel):
    model_config = ConfigDict(strict=True, extra="allow")

    teacher_idx: int


class TeachersRelationship(BaseModel):
    """``{"student_idx": 546, "teachers": [{"teacher_idx": 18947, "pattern": "...", "cluster": 12}]}``"""

    model_config = ConfigDict(strict=True)

    student_idx: int
    teachers: List[TeacherRef]


class Alignment(BaseModel):
    """One aligned concept, expressed in unique symbols."""

    model_config = ConfigDict(populate_by_name=True)

    comment_token: List[str] = Field(alias="commentToken")
    code_token: List[str] = Field(alias="codeToken")


class AlignmentResponse(BaseModel):
    alignments: List[Alignment]


def describe_validation_error(exc: ValidationError) -> List[str]:
    problems = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err["loc"]) or "<record>"
        problems.append(f"{where}: {err['msg']}")
    return problems


def iter_json_lines(content: str) -> Iterator[Tuple[int, str]]:
    """Yield ``(line_number, stripped_line)`` for each non-blank line, 1-based."""
    for number, line in enumerate(content.split("\n"), start=1):
        line = line.strip()
        if line:
            yield number, line


class _LineError(Exception):
    def __init__(self, problems: List[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems


def _validate_line(model: Type[RecordT], line: str) -> RecordT:
    # Decode first so JSON and schema problems surface the same way.
    try:
        data: Any = json.loads(line)
    except json.JSONDecodeError as exc:
        raise _LineError([f"invalid JSON: {exc.msg} (column {exc.colno})"]) from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise _LineError(describe_validation_error(exc)) from exc


def parse_json_lines(
    content: str,
    model: Type[RecordT],
    on_error: OnError = "raise",
    error_factory: Callable[[int, str, List[str]], Exception] = LabelingParseError,
) -> List[RecordT]:
    """Validate every line of ``content`` against ``model``.

    ``on_error="raise"`` aborts on the first bad line with the exception
    built by ``error_factory(line_number, line, problems)``;
    ``on_error="skip"`` logs the bad line and keeps going.
    """
    if on_error not in ("raise", "skip"):
        raise ValueError(f"on_error must be 'raise' or 'skip', got {on_error!r}")

    records: List[RecordT] = []
    for number, line in iter_json_lines(content):
        try:
            records.append(_validate_line(model, line))
        except _LineError as exc:
            if on_error == "raise":
                log.error("Cannot parse line %d as %s: %s", number, model.__name__, exc)
                raise error_factory(number, line, exc.problems) from exc.__cause__
            log.warning("Skipping line %d, not a valid %s: %s", number, model.__name__, exc)
    return records


def parse_labeling(content: str, on_error: OnError = "raise") -> List[LabelingRecord]:
    return parse_json_lines(content, LabelingRecord, on_error=on_error)

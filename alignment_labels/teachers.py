"""Student sample -> teacher (reference) samples lookup."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .errors import TeachersParseError
from .records import TeachersRelationship, parse_json_lines

__all__ = [
    "TeachersRelationshipProvider",
    "parse_teachers",
]

log = logging.getLogger(__name__)


def _teachers_error(line_number: int, line: str, problems: List[str]) -> TeachersParseError:
    return TeachersParseError(problems, line_number=line_number)


def parse_teachers(content: str) -> List[TeachersRelationship]:
    """Validate a whole teachers file; one malformed record rejects the batch."""
    return parse_json_lines(
        content, TeachersRelationship, on_error="raise", error_factory=_teachers_error
    )


class TeachersRelationshipProvider:
    """Read-only map from a student sample id to its teacher records.

    Each teacher record is a dict with at least ``teacher_idx``; any extra
    metadata (``pattern``, ``cluster``, ...) is kept as is.
    """

    def __init__(
        self,
        data: Optional[Iterable[TeachersRelationship]] = None,
        teachers_map: Optional[Mapping[int, List[Dict[str, Any]]]] = None,
    ) -> None:
        self._teachers: Dict[int, List[Dict[str, Any]]] = {}
        if teachers_map is not None:
            self._teachers = {k: [dict(t) for t in v] for k, v in teachers_map.items()}
        elif data is not None:
            for relationship in data:
                self._teachers[relationship.student_idx] = [
                    teacher.model_dump() for teacher in relationship.teachers
                ]

    @classmethod
    def from_jsonl(cls, content: str) -> "TeachersRelationshipProvider":
        provider = cls(data=parse_teachers(content))
        log.info("Loaded teachers for %d students", len(provider))
        return provider

    def __len__(self) -> int:
        return len(self._teachers)

    def __contains__(self, idx: object) -> bool:
        return idx in self._teachers

    def copy(self) -> "TeachersRelationshipProvider":
        return TeachersRelationshipProvider(teachers_map=self._teachers)

    def get_teachers(self, idx: int) -> Optional[List[Dict[str, Any]]]:
        teachers = self._teachers.get(idx)
        if teachers is None:
            return None
        return [dict(t) for t in teachers]

    def get_teacher_indices(self, idx: int) -> List[int]:
        return [t["teacher_idx"] for t in self._teachers.get(idx, ())]

"""Exception types raised by alignment_labels."""

from __future__ import annotations

from typing import List, Optional

__all__ = [
    "AlignmentLabelsError",
    "LabelingParseError",
    "TeachersParseError",
    "AlignmentRequestError",
]


class AlignmentLabelsError(Exception):
    pass


class LabelingParseError(AlignmentLabelsError, ValueError):
    """A labeling file line could not be turned into a ``LabelingRecord``."""

    def __init__(
        self,
        line_number: int,
        line: str,
        problems: List[str],
    ) -> None:
        self.line_number = line_number
        self.line = line
        self.problems = list(problems)
        super().__init__(
            f"Invalid labeling record on line {line_number}: " + "; ".join(problems)
        )


class TeachersParseError(AlignmentLabelsError, ValueError):
    def __init__(self, problems: List[str], line_number: Optional[int] = None) -> None:
        self.line_number = line_number
        self.problems = list(problems)
        where = f" on line {line_number}" if line_number is not None else ""
        super().__init__(f"Invalid teachers record{where}: " + "; ".join(problems))


class AlignmentRequestError(AlignmentLabelsError):
    pass

"""Compact paired-endpoint encoding of token index sets.

A set of token indices such as ``{0, 1, 2, 7, 8, 10}`` is persisted as the
flat list ``[0, 2, 7, 8, 10, 10]``: consecutive ``[start, end]`` pairs of
closed intervals, sorted and maximally merged.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

__all__ = [
    "TokenRanges",
    "expand_ranges",
    "reduce_to_ranges",
    "match_to_indices",
    "indices_to_match",
]


class TokenRanges:
    def __init__(self, value: Sequence[int]) -> None:
        self.value: List[int] = list(value)

    def __repr__(self) -> str:
        return f"TokenRanges({self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenRanges):
            return NotImplemented
        return self.value == other.value

    def expand(self) -> List[int]:
        """Every integer covered by the pairs, in pair order.

        A trailing unpaired endpoint is ignored. Output is neither sorted nor
        deduplicated: well-formed input is the caller's responsibility.
        """
        indices: List[int] = []
        ranges = self.value
        for i in range(0, len(ranges) - 1, 2):
            indices.extend(range(ranges[i], ranges[i + 1] + 1))
        return indices

    @classmethod
    def reduce_from(cls, indices: Iterable[int]) -> "TokenRanges":
        """Merge arbitrary (unsorted, duplicated) indices into minimal intervals."""
        ordered = sorted(indices)
        ranges: List[int] = []
        if not ordered:
            return cls(ranges)

        start = end = ordered[0]
        for idx in ordered[1:]:
            if idx <= end + 1:
                # duplicates land here too and must not open a gap
                end = max(end, idx)
            else:
                ranges.extend((start, end))
                start = end = idx
        ranges.extend((start, end))

        return cls(ranges)


def expand_ranges(ranges: Sequence[int]) -> List[int]:
    return TokenRanges(ranges).expand()


def reduce_to_ranges(indices: Iterable[int]) -> List[int]:
    return TokenRanges.reduce_from(indices).value


# ------- match[label][group] <-> indices[label][group] ------- #
def match_to_indices(match: Sequence[Sequence[Sequence[int]]]) -> List[List[List[int]]]:
    return [[expand_ranges(group) for group in label] for label in match]


def indices_to_match(
    indices: Sequence[Sequence[Optional[Sequence[int]]]],
) -> List[List[List[int]]]:
    return [
        [reduce_to_ranges(group) if group else [] for group in label]
        for label in indices
    ]

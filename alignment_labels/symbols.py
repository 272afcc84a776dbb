"""Unique string symbols for talking to a string-based aligner.

An external aligner answers with token *strings*, not positions, so a
token list is first made collision free (``["a", "a", "b"]`` becomes
``["a", "a▲2", "b"]``) and the answer is mapped back through the
symbol -> index table.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .records import Alignment
from .reconcile import is_special_token, strip_subword_marker

__all__ = [
    "COMMENT_GLYPH",
    "CODE_GLYPH",
    "to_unique_symbols",
    "to_alignment_with_unique_tokens",
    "to_alignment_with_indices",
]

COMMENT_GLYPH = "▲"
CODE_GLYPH = "■"


def to_unique_symbols(
    tokens: Sequence[str], is_comment: bool = True
) -> Tuple[List[str], Dict[str, int]]:
    """Return ``(symbols, symbol_to_index)``.

    Special tokens are dropped, so indices are dense over the remaining
    tokens, matching the indices handed out by reconciliation when every
    token is found in the text. Repeated tokens keep their first occurrence
    as is; later ones become ``<token><glyph><n>`` with ``n`` the occurrence
    number, skipping numbers whose symbol is already taken.
    """
    cleaned = [strip_subword_marker(t) for t in tokens if not is_special_token(t)]
    glyph = COMMENT_GLYPH if is_comment else CODE_GLYPH

    seen: Counter = Counter()
    symbols: List[str] = []
    mapping: Dict[str, int] = {}
    for i, token in enumerate(cleaned):
        seen[token] += 1
        symbol = token if seen[token] == 1 else f"{token}{glyph}{seen[token]}"
        # a suffixed symbol may already be taken by a literal token
        while symbol in mapping:
            seen[token] += 1
            symbol = f"{token}{glyph}{seen[token]}"
        symbols.append(symbol)
        mapping[symbol] = i

    return symbols, mapping


def to_alignment_with_unique_tokens(
    unique_code_tokens: Sequence[str],
    unique_comment_tokens: Sequence[str],
    labeling: Sequence[Sequence[Sequence[int]]],
) -> List[Alignment]:
    """Express ``labeling[label] = [comment, code]`` as symbol alignments."""

    def pick(symbols: Sequence[str], indices: Sequence[int]) -> List[str]:
        return [symbols[i] for i in indices if 0 <= i < len(symbols)]

    alignments = []
    for groups in labeling:
        comment = groups[0] if len(groups) > 0 else []
        code = groups[1] if len(groups) > 1 else []
        alignments.append(
            Alignment(
                comment_token=pick(unique_comment_tokens, comment),
                code_token=pick(unique_code_tokens, code),
            )
        )
    return alignments


def to_alignment_with_indices(
    alignments: Sequence[Alignment],
    maps_to_original_index: Tuple[Mapping[str, int], Mapping[str, int]],
) -> List[List[List[int]]]:
    """Map symbol alignments back to ``labeling[label] = [comment, code]``.

    Symbols missing from the maps are dropped.
    """
    comment_map, code_map = maps_to_original_index

    def lookup(mapping: Mapping[str, int], symbols: Sequence[str]) -> List[int]:
        found: List[Optional[int]] = [mapping.get(s) for s in symbols]
        return [i for i in found if i is not None]

    return [
        [lookup(comment_map, a.comment_token), lookup(code_map, a.code_token)]
        for a in alignments
    ]

"""Map a sub-word token stream back onto the text it was produced from.

Every non-special token that can be found in the text gets a dense index
(0, 1, 2, ...) and a ``[begin, end)`` character span. The labeling engine
stores those dense indices, so highlighting and labeling agree on which
characters "token 7" covers.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

__all__ = [
    "SUBWORD_MARKER",
    "TokenSpan",
    "Reconciliation",
    "Segment",
    "is_special_token",
    "strip_subword_marker",
    "remove_docstrings",
    "find_comment_end",
    "reconcile_tokens",
    "token_label_map",
    "render_segments",
]

log = logging.getLogger(__name__)

# Byte-level BPE marks a leading space as "Ġ".
SUBWORD_MARKER = "Ġ"

_DOUBLE_QUOTE_DOCSTRING_RE = re.compile(r'""".*?"""', re.DOTALL)
_SINGLE_QUOTE_DOCSTRING_RE = re.compile(r"'''.*?'''", re.DOTALL)


@dataclass(frozen=True)
class TokenSpan:
    index: int  # dense index, special and unmatched tokens excluded
    begin: int
    end: int
    text: str
    source_position: int  # position in the raw token list


@dataclass(frozen=True)
class Reconciliation:
    text: str  # the text the spans refer to (docstrings already removed)
    spans: List[TokenSpan]
    dropped: List[int]  # raw token positions that could not be matched

    def __len__(self) -> int:
        return len(self.spans)

    def span_of(self, index: int) -> Optional[TokenSpan]:
        if 0 <= index < len(self.spans):
            return self.spans[index]
        return None


@dataclass(frozen=True)
class Segment:
    text: str
    token_index: Optional[int] = None
    label: Optional[int] = None
    highlight: Optional[int] = None

    @property
    def is_token(self) -> bool:
        return self.token_index is not None


def is_special_token(token: str) -> bool:
    return token.startswith("<") and token.endswith(">")


def strip_subword_marker(token: str) -> str:
    return token.replace(SUBWORD_MARKER, "")


def remove_docstrings(text: str) -> str:
    text = _DOUBLE_QUOTE_DOCSTRING_RE.sub("", text)
    text = _SINGLE_QUOTE_DOCSTRING_RE.sub("", text)
    return text


def find_comment_end(text: str, pos: int) -> int:
    """Skip whitespace from ``pos`` and, if a ``#`` follows, the rest of that line.

    The newline itself is not consumed.
    """
    i = pos
    n = len(text)
    while i < n and text[i].isspace():
        i += 1

    if i < n and text[i] == "#":
        while i < n and text[i] != "\n":
            i += 1

    return i


def reconcile_tokens(
    text: str,
    tokens: Sequence[str],
    strip_docstrings: bool = True,
    skip_comments: bool = True,
) -> Reconciliation:
    """Assign dense indices and character spans to ``tokens`` within ``text``.

    - Special tokens (``<s>``, ``</s>``, ...) get no index and leave the
      cursor where it is.
    - Tokens that cannot be found after the cursor are dropped: they get no
      index and the next token continues the sequence.
    - ``skip_comments`` jumps over a ``#`` line comment before each search.
      It also applies to natural-language text containing ``#``, so callers
      aligning comment samples may want to turn it off.
    """
    if strip_docstrings:
        text = remove_docstrings(text)

    spans: List[TokenSpan] = []
    dropped: List[int] = []
    pos = 0

    for position, token in enumerate(tokens):
        if is_special_token(token):
            continue

        token = strip_subword_marker(token)
        search_from = find_comment_end(text, pos) if skip_comments else pos

        found = text.find(token, search_from)
        if found < 0:
            log.debug("Token %r at position %d not found after offset %d", token, position, search_from)
            dropped.append(position)
            continue

        end = found + len(token)
        spans.append(
            TokenSpan(
                index=len(spans),
                begin=found,
                end=end,
                text=token,
                source_position=position,
            )
        )
        pos = end

    return Reconciliation(text=text, spans=spans, dropped=dropped)


def token_label_map(grouped_indices: Sequence[Optional[Sequence[int]]]) -> Dict[int, int]:
    """Invert ``grouped_indices[label] -> indices`` into ``index -> label``.

    With overlapping groups the later label wins.
    """
    lookup: Dict[int, int] = {}
    for label, indices in enumerate(grouped_indices):
        for idx in indices or ():
            lookup[idx] = label
    return lookup


def render_segments(
    reconciliation: Reconciliation,
    grouped_indices: Sequence[Optional[Sequence[int]]] = (),
    highlighted_indices: Sequence[Optional[Sequence[int]]] = (),
) -> List[Segment]:
    """Split the reconciled text into plain-text and token segments.

    Token segments carry their dense index and the label / highlight group
    that owns that index, if any. Concatenating every segment's text gives
    back ``reconciliation.text``.
    """
    labels = token_label_map(grouped_indices)
    highlights = token_label_map(highlighted_indices)
    text = reconciliation.text

    segments: List[Segment] = []
    pos = 0
    for span in reconciliation.spans:
        if span.begin > pos:
            segments.append(Segment(text=text[pos : span.begin]))
        segments.append(
            Segment(
                text=text[span.begin : span.end],
                token_index=span.index,
                label=labels.get(span.index),
                highlight=highlights.get(span.index),
            )
        )
        pos = span.end

    if pos < len(text):
        segments.append(Segment(text=text[pos:]))

    return segments

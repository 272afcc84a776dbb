"""Readers for the token and full-text files, and sample assembly.

Both files are positional: line ``i`` belongs to sample ``i``.

- token files: one JSON array of token strings per line;
- full-text file: one ``{"code": ..., "docstring": ...}`` object per line.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .labeling import CODE_GROUP, COMMENT_GROUP, LabelingEngine
from .reconcile import Reconciliation, reconcile_tokens

__all__ = [
    "LabeledTextSample",
    "GROUP_TEXT_FIELDS",
    "read_text_file",
    "read_json_lines",
    "load_token_lists",
    "load_full_texts",
    "build_samples",
]

log = logging.getLogger(__name__)

# Which full-text field holds the text of each group.
GROUP_TEXT_FIELDS = {
    COMMENT_GROUP: "docstring",
    CODE_GROUP: "code",
}


@dataclass
class LabeledTextSample:
    index: int
    group: int
    text: str
    tokens: List[str]
    labeling: List[List[int]] = field(default_factory=list)  # labeling[label] -> indices

    def reconcile(self, strip_docstrings: bool = True, skip_comments: bool = True) -> Reconciliation:
        return reconcile_tokens(
            self.text,
            self.tokens,
            strip_docstrings=strip_docstrings,
            skip_comments=skip_comments,
        )


def read_text_file(path: Union[str, Path]) -> str:
    return Path(path).read_text(encoding="utf-8")


def read_json_lines(content: str) -> List[Any]:
    """Decode every line of ``content``; only a trailing empty line is ignored.

    Lines are positional, so a blank line in the middle is an error rather
    than something to skip.
    """
    lines = content.split("\n")
    if lines and not lines[-1].strip():
        lines.pop()
    return [json.loads(line.strip()) for line in lines]


def load_token_lists(content: str) -> List[List[str]]:
    token_lists = read_json_lines(content)
    for number, tokens in enumerate(token_lists, start=1):
        if not isinstance(tokens, list) or not all(isinstance(t, str) for t in tokens):
            raise ValueError(f"Line {number} of the token file is not a list of strings")
    return token_lists


def load_full_texts(content: str) -> List[Dict[str, Any]]:
    texts = read_json_lines(content)
    for number, item in enumerate(texts, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"Line {number} of the full-text file is not an object")
    return texts


def build_samples(
    engine: LabelingEngine,
    full_texts: Sequence[Dict[str, Any]],
    token_lists: Sequence[List[str]],
    group: int,
    text_field: Optional[str] = None,
) -> List[LabeledTextSample]:
    """One :class:`LabeledTextSample` per labeled sample, in engine order.

    Samples whose id is beyond either file are skipped with a warning.
    """
    if text_field is None:
        text_field = GROUP_TEXT_FIELDS[group]

    samples = []
    for idx in engine.get_sample_indices():
        if idx < 0 or idx >= len(full_texts) or idx >= len(token_lists):
            log.warning("Sample %d has labels but no text or tokens, skipping", idx)
            continue
        samples.append(
            LabeledTextSample(
                index=idx,
                group=group,
                text=full_texts[idx].get(text_field) or "",
                tokens=list(token_lists[idx]),
                labeling=engine.get_tokens_on_group(idx, group) or [],
            )
        )
    return samples

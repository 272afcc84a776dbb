from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from Bio import Align


def make_aligner(mode: str = "global") -> Align.PairwiseAligner:
    """Token aligner that gaps around unequal tokens instead of pairing them.

    A mismatch (-2) costs more than a gap on each side (-0.5 each), so the
    best alignment only pairs identical tokens, which is all
    :func:`align_tokens` keeps.
    """
    a = Align.PairwiseAligner()
    a.mode = mode
    a.match_score = 2
    a.mismatch_score = -2
    a.open_gap_score = -0.5
    a.extend_gap_score = -0.1
    return a


def align_tokens(
    source: Sequence[str],
    target: Sequence[str],
    aligner: Optional[Align.PairwiseAligner] = None,
) -> List[Tuple[int, int]]:
    """Pairs ``(source_index, target_index)`` of identical tokens in the best alignment."""
    if not source or not target:
        return []
    if aligner is None:
        aligner = make_aligner()

    # lists are aligned item by item, so multi-character tokens stay whole
    alignment = aligner.align(list(source), list(target))[0]
    s_blocks, t_blocks = (np.asarray(blocks) for blocks in alignment.aligned)

    pairs = []
    for (s_begin, s_end), (t_begin, _t_end) in zip(s_blocks, t_blocks):
        for offset in range(int(s_end - s_begin)):
            si, ti = int(s_begin) + offset, int(t_begin) + offset
            if source[si] == target[ti]:
                pairs.append((si, ti))
    return pairs


def index_mapping(
    source: Sequence[str],
    target: Sequence[str],
    aligner: Optional[Align.PairwiseAligner] = None,
) -> Dict[int, int]:
    return dict(align_tokens(source, target, aligner))


def project_labeling(
    teacher_tokens: Tuple[Sequence[str], Sequence[str]],
    teacher_labeling: Sequence[Sequence[Sequence[int]]],
    student_tokens: Tuple[Sequence[str], Sequence[str]],
    aligner: Optional[Align.PairwiseAligner] = None,
) -> List[List[List[int]]]:
    """Carry a teacher's ``labeling[label] = [comment, code]`` over to a student.

    Comment and code tokens are aligned separately; teacher indices with no
    identical counterpart in the student are dropped, and so are labels
    that end up empty in both groups.
    """
    if aligner is None:
        aligner = make_aligner()

    mappings = [
        index_mapping(teacher_group, student_group, aligner)
        for teacher_group, student_group in zip(teacher_tokens, student_tokens)
    ]

    projected = []
    for groups in teacher_labeling:
        label = []
        for group, mapping in enumerate(mappings):
            indices = groups[group] if group < len(groups) else []
            label.append(sorted({mapping[i] for i in indices if i in mapping}))
        if any(label):
            projected.append(label)
    return projected

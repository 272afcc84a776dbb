"""Token-level alignment labels between a comment and its code."""

from .alignment import align_tokens, make_aligner, project_labeling
from .labeling import CODE_GROUP, COMMENT_GROUP, LabelingEngine
from .ranges import TokenRanges, expand_ranges, reduce_to_ranges
from .reconcile import reconcile_tokens, render_segments
from .symbols import to_unique_symbols
from .teachers import TeachersRelationshipProvider

__all__ = [
    "COMMENT_GROUP",
    "CODE_GROUP",
    "LabelingEngine",
    "TeachersRelationshipProvider",
    "TokenRanges",
    "expand_ranges",
    "reduce_to_ranges",
    "reconcile_tokens",
    "render_segments",
    "to_unique_symbols",
    "align_tokens",
    "make_aligner",
    "project_labeling",
]
__version__ = "0.1.0"

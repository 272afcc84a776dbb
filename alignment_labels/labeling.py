"""Per-sample, per-label, per-group token index store.

State for one sample is a sparse map ``label -> group -> [token indices]``.
Labels are numbered from 0; assigning to label 5 on an empty sample makes
labels 0-4 exist as empty placeholders, so ``get_num_of_labels_on_sample``
reports 6. Group 0 holds comment tokens and group 1 holds code tokens.

Within one sample a token index belongs to at most one label per group.
The engine only enforces that through :meth:`LabelingEngine.change_tokens_to_label`;
``add_tokens_to_label`` appends blindly.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from typing import Callable, DefaultDict, Dict, Iterable, List, Optional, Sequence

from .ranges import expand_ranges, reduce_to_ranges
from .records import OnError, parse_labeling

__all__ = [
    "COMMENT_GROUP",
    "CODE_GROUP",
    "NUM_GROUPS",
    "SampleLabeling",
    "LabelingEngine",
]

log = logging.getLogger(__name__)

COMMENT_GROUP = 0
CODE_GROUP = 1
NUM_GROUPS = 2

SaveCallback = Callable[[str], None]


def _group_map() -> DefaultDict[int, List[int]]:
    return defaultdict(list)


class SampleLabeling:
    """Labels of a single sample: ``label -> group -> token indices``."""

    def __init__(self) -> None:
        self._labels: DefaultDict[int, DefaultDict[int, List[int]]] = defaultdict(_group_map)

    @classmethod
    def from_lists(cls, labeling: Sequence[Sequence[Optional[Sequence[int]]]]) -> "SampleLabeling":
        """Build from ``labeling[label][group]``; empty entries become placeholders."""
        sample = cls()
        for label, groups in enumerate(labeling):
            groups_of_label = sample._labels[label]
            for group, indices in enumerate(groups or ()):
                groups_of_label[group] = list(indices or ())
        return sample

    @classmethod
    def from_match(cls, match: Sequence[Sequence[Sequence[int]]]) -> "SampleLabeling":
        return cls.from_lists(
            [[expand_ranges(group) for group in label] for label in match]
        )

    def clone(self) -> "SampleLabeling":
        other = SampleLabeling()
        for label, groups in self._labels.items():
            cloned = other._labels[label]
            for group, indices in groups.items():
                cloned[group] = list(indices)
        return other

    @property
    def num_labels(self) -> int:
        return max(self._labels) + 1 if self._labels else 0

    def tokens(self, label: int, group: int) -> Optional[List[int]]:
        groups = self._labels.get(label)
        if groups is None:
            return None
        indices = groups.get(group)
        return list(indices) if indices is not None else None

    def ensure(self, label: int, group: int) -> List[int]:
        """Return the live index list, creating placeholders up to ``label``/``group``."""
        for placeholder in range(label):
            self._labels[placeholder]
        groups = self._labels[label]
        for placeholder in range(max(group, NUM_GROUPS - 1) + 1):
            groups[placeholder]
        return groups[group]

    def remove(self, label: int, group: int, tokens: Iterable[int]) -> None:
        groups = self._labels.get(label)
        if groups is None:
            return
        indices = groups.get(group)
        if indices is None:
            return
        drop = set(tokens)
        indices[:] = [idx for idx in indices if idx not in drop]

    def to_lists(self) -> List[List[List[int]]]:
        """Dense ``labeling[label][group]``; each label has at least two groups."""
        result = []
        for label in range(self.num_labels):
            groups = self._labels.get(label, {})
            width = max(max(groups, default=0) + 1, NUM_GROUPS)
            result.append([list(groups.get(group, ())) for group in range(width)])
        return result

    def to_match(self) -> List[List[List[int]]]:
        return [[reduce_to_ranges(group) for group in label] for label in self.to_lists()]


class LabelingEngine:
    """In-memory source of truth for the labels of a corpus.

    ``save()`` never clears anything: it only hands the textual dump of the
    whole corpus to ``on_save``. ``on_error`` is the default line policy for
    :meth:`load` (``"raise"`` aborts the load, ``"skip"`` drops bad lines).
    """

    def __init__(
        self,
        content: Optional[str] = None,
        on_save: Optional[SaveCallback] = None,
        on_error: OnError = "raise",
    ) -> None:
        self._samples: Dict[int, SampleLabeling] = {}
        self._original: Dict[int, SampleLabeling] = {}
        self._sample_indices: List[int] = []
        self._on_save = on_save
        self._on_error: OnError = on_error
        self._lock = threading.RLock()

        if content:
            self.load(content)

    @property
    def on_save(self) -> Optional[SaveCallback]:
        return self._on_save

    def copy(self) -> "LabelingEngine":
        with self._lock:
            other = LabelingEngine(on_save=self._on_save, on_error=self._on_error)
            other._samples = {k: v.clone() for k, v in self._samples.items()}
            other._original = {k: v.clone() for k, v in self._original.items()}
            other._sample_indices = list(self._sample_indices)
        return other

    # ------------- loading / saving -------------

    def load(self, content: str, on_error: Optional[OnError] = None) -> None:
        """Replace the whole corpus with the records in ``content``.

        Raises :class:`~alignment_labels.errors.LabelingParseError` under the
        ``"raise"`` policy; the engine is left untouched in that case.
        """
        records = parse_labeling(content, on_error=on_error or self._on_error)

        samples: Dict[int, SampleLabeling] = {}
        for record in records:
            samples[record.idx] = SampleLabeling.from_match(record.match)

        with self._lock:
            self._samples = samples
            self._original = {k: v.clone() for k, v in samples.items()}
            self._sample_indices = list(samples)

        log.info("Loaded labeling for %d samples", len(samples))

    def dump(self) -> str:
        with self._lock:
            lines = [
                json.dumps({"idx": idx, "match": sample.to_match()}, separators=(",", ":"))
                for idx, sample in self._samples.items()
            ]
        return "\n".join(lines)

    def save(self) -> None:
        if self._on_save is None:
            return
        dumped = self.dump()
        log.info("Saving labeling for %d samples", len(self._samples))
        self._on_save(dumped)

    # ------------- reads -------------

    def get_sample_indices(self) -> List[int]:
        """Sample ids of the last :meth:`load`, in order of first appearance.

        Samples created later by edits are saved but not listed here.
        """
        with self._lock:
            return list(self._sample_indices)

    def get_num_of_labels_on_sample(self, sample: int) -> int:
        with self._lock:
            labeling = self._samples.get(sample)
            return labeling.num_labels if labeling is not None else 0

    def get_tokens_on_group_on_label(self, sample: int, group: int, label: int) -> Optional[List[int]]:
        with self._lock:
            labeling = self._samples.get(sample)
            if labeling is None:
                return None
            return labeling.tokens(label, group)

    def get_tokens_on_group(self, sample: int, group: int) -> Optional[List[List[int]]]:
        """Token indices of ``group`` for every label of ``sample``, by label number."""
        with self._lock:
            labeling = self._samples.get(sample)
            if labeling is None:
                return None
            return [labeling.tokens(label, group) or [] for label in range(labeling.num_labels)]

    def get_labeling_on_sample(self, sample: int) -> Optional[List[List[List[int]]]]:
        with self._lock:
            labeling = self._samples.get(sample)
            return labeling.to_lists() if labeling is not None else None

    # ------------- mutations -------------

    def set_labeling_on_sample(self, sample: int, labeling: Sequence[Sequence[Optional[Sequence[int]]]]) -> None:
        with self._lock:
            self._samples[sample] = SampleLabeling.from_lists(labeling)

    def add_tokens_to_label(self, sample: int, group: int, label: int, tokens: Iterable[int]) -> None:
        if label < 0 or group < 0:
            log.debug("Ignoring add to label %d group %d on sample %d", label, group, sample)
            return
        with self._lock:
            labeling = self._samples.get(sample)
            if labeling is None:
                labeling = self._samples[sample] = SampleLabeling()
            labeling.ensure(label, group).extend(tokens)

    def remove_tokens_on_label(self, sample: int, group: int, label: int, tokens: Iterable[int]) -> None:
        with self._lock:
            labeling = self._samples.get(sample)
            if labeling is not None:
                labeling.remove(label, group, tokens)

    def remove_tokens_from_all_labels(self, sample: int, group: int, tokens: Iterable[int]) -> None:
        with self._lock:
            labeling = self._samples.get(sample)
            if labeling is None:
                return
            tokens = list(tokens)
            for label in range(labeling.num_labels):
                labeling.remove(label, group, tokens)

    def change_tokens_to_label(self, sample: int, group: int, label: int, tokens: Iterable[int]) -> None:
        """Move ``tokens`` of ``group`` to ``label``, taking them away from any other label.

        A negative ``label`` only removes them.
        """
        tokens = list(tokens)
        with self._lock:
            self.remove_tokens_from_all_labels(sample, group, tokens)
            if label >= 0:
                self.add_tokens_to_label(sample, group, label, tokens)

    def reset_sample(self, sample: int) -> None:
        """Discard in-session edits of ``sample``, back to what the last ``load`` read."""
        with self._lock:
            original = self._original.get(sample)
            self._samples[sample] = original.clone() if original is not None else SampleLabeling()

    def clear_all_labels_for_sample(self, sample: int) -> None:
        with self._lock:
            if sample in self._samples:
                self._samples[sample] = SampleLabeling()

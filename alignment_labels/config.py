"""Annotator settings with change notification.

``AnnotatorConfig`` lists every setting explicitly. ``ObservableConfig``
wraps one and notifies subscribers with ``(name, value)`` whenever a
setting actually changes. Apart from the reconciliation switches
(``strip_docstrings``, ``skip_comments``) nothing here is interpreted by
the library; the values are carried for the caller.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

__all__ = [
    "DEFAULT_LABEL_COLORS",
    "AnnotatorConfig",
    "ObservableConfig",
    "label_color",
]

log = logging.getLogger(__name__)

DEFAULT_LABEL_COLORS = [
    "green",
    "red",
    "yellow",
    "orange",
    "cyan",
    "lime",
    "pink",
    "gray",
    "grape",
    "violet",
    "indigo",
    "teal",
]

Listener = Callable[[str, Any], None]


@dataclass
class AnnotatorConfig:
    # where the data lives
    tokens_directory: str = "/demo"
    complete_code_tokens_file: str = "tokenized_code_tokens_train.jsonl"
    complete_comment_tokens_file: str = "tokenized_comment_tokens_train.jsonl"
    full_text_file: str = "train.jsonl"
    labeling_file: str = "sorted_labelling_sample_api.jsonl"
    teacher_file: str = "student_teachers_pairs.jsonl"
    highlight_file: str = "auto_highlight.jsonl"

    # reconciliation
    strip_docstrings: bool = True
    skip_comments: bool = True

    # display
    outline_tokens: bool = True
    show_teacher_samples: bool = False
    label_colors: List[str] = field(default_factory=list)

    # alignment suggestions
    alignment_api_url: str = "/"
    alignment_api_key: str = ""

    use_advanced_features: bool = False
    show_external_labeling: bool = False
    show_external_labeling_score: bool = True
    show_external_labeling_score_in_percentage: bool = True


def label_color(config: AnnotatorConfig, label: int) -> str:
    """Color of ``label``, cycling through the configured (or default) palette."""
    palette = config.label_colors or DEFAULT_LABEL_COLORS
    return palette[label % len(palette)]


class ObservableConfig:
    def __init__(self, config: Optional[AnnotatorConfig] = None) -> None:
        self._config = config if config is not None else AnnotatorConfig()
        self._names = {f.name for f in fields(AnnotatorConfig)}
        self._listeners: List[Listener] = []

    @property
    def values(self) -> AnnotatorConfig:
        """A copy; edits to it are not observed."""
        return copy.deepcopy(self._config)

    def get(self, name: str) -> Any:
        self._check(name)
        return getattr(self._config, name)

    def set(self, name: str, value: Any) -> None:
        self._check(name)
        if getattr(self._config, name) == value:
            return
        setattr(self._config, name, value)
        log.debug("Config %s changed", name)
        for listener in list(self._listeners):
            listener(name, value)

    def update(self, **values: Any) -> None:
        for name in values:
            self._check(name)
        for name, value in values.items():
            self.set(name, value)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self._config)

    def _check(self, name: str) -> None:
        if name not in self._names:
            raise AttributeError(f"Unknown config setting: {name}")

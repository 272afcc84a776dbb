"""Alignment suggestions from a (possibly streaming) provider.

A provider receives the student's comment/code tokens as unique symbols,
optionally a teacher example with its alignments, and streams back text
that must contain an ``{"alignments": [...]}`` JSON object. Callbacks are
invoked on the calling thread: every ``on_data`` chunk in receipt order,
then ``on_finish`` with the validated response. Failures go to
``on_error`` (or are raised when no ``on_error`` is given). Nothing here
touches a :class:`~alignment_labels.labeling.LabelingEngine`; applying a
suggestion is the caller's decision.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Sequence

from pydantic import ValidationError

from .alignment import make_aligner, project_labeling
from .errors import AlignmentRequestError
from .records import Alignment, AlignmentResponse, describe_validation_error
from .symbols import (
    CODE_GLYPH,
    COMMENT_GLYPH,
    to_alignment_with_indices,
    to_alignment_with_unique_tokens,
    to_unique_symbols,
)

__all__ = [
    "TokenPair",
    "StreamCallbacks",
    "AlignmentProvider",
    "TeacherProjectionProvider",
    "parse_alignment_response",
    "symbol_base",
    "request_suggestion",
]

log = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
_SYMBOL_SUFFIX_RE = re.compile(f"[{COMMENT_GLYPH}{CODE_GLYPH}]\\d+$")


@dataclass
class TokenPair:
    comment_tokens: List[str]
    code_tokens: List[str]


@dataclass
class StreamCallbacks:
    on_data: Optional[Callable[[str], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None
    on_finish: Optional[Callable[[AlignmentResponse], None]] = None


def parse_alignment_response(text: str) -> AlignmentResponse:
    """Pull the outermost JSON object out of ``text`` and validate it."""
    m = _JSON_OBJECT_RE.search(text)
    if not m:
        raise AlignmentRequestError("No valid JSON found in response")
    try:
        return AlignmentResponse.model_validate(json.loads(m.group(0)))
    except json.JSONDecodeError as exc:
        raise AlignmentRequestError(f"Response is not valid JSON: {exc.msg}") from exc
    except ValidationError as exc:
        raise AlignmentRequestError(
            "Response does not match the alignment schema: "
            + "; ".join(describe_validation_error(exc))
        ) from exc


def symbol_base(symbol: str) -> str:
    """Undo the duplicate suffix added by ``to_unique_symbols``."""
    return _SYMBOL_SUFFIX_RE.sub("", symbol)


class AlignmentProvider:
    """Base class; subclasses implement :meth:`stream`.

    One request may be in flight per provider instance. An overlapping call
    fails with :class:`AlignmentRequestError` instead of interleaving
    callbacks of two requests.
    """

    def __init__(self) -> None:
        self._in_flight = threading.Lock()

    def stream(
        self,
        student: TokenPair,
        teacher: Optional[TokenPair],
        teacher_alignments: Optional[Sequence[Alignment]],
    ) -> Iterator[str]:
        raise NotImplementedError

    def generate_alignment(
        self,
        student: TokenPair,
        teacher: Optional[TokenPair] = None,
        teacher_alignments: Optional[Sequence[Alignment]] = None,
        callbacks: Optional[StreamCallbacks] = None,
    ) -> Optional[AlignmentResponse]:
        if callbacks is None:
            callbacks = StreamCallbacks()
        if teacher is None or teacher_alignments is None:
            teacher, teacher_alignments = None, None

        if not self._in_flight.acquire(blocking=False):
            return self._fail(
                AlignmentRequestError("An alignment request is already in flight"),
                callbacks,
            )

        try:
            chunks = []
            for chunk in self.stream(student, teacher, teacher_alignments):
                chunks.append(chunk)
                if callbacks.on_data is not None:
                    callbacks.on_data(chunk)
            response = parse_alignment_response("".join(chunks))
        except Exception as exc:
            return self._fail(exc, callbacks)
        finally:
            self._in_flight.release()

        log.info("Received %d alignments", len(response.alignments))
        if callbacks.on_finish is not None:
            callbacks.on_finish(response)
        return response

    @staticmethod
    def _fail(exc: Exception, callbacks: StreamCallbacks) -> None:
        log.error("Alignment request failed: %s", exc)
        if callbacks.on_error is None:
            raise exc
        callbacks.on_error(exc)
        return None


class TeacherProjectionProvider(AlignmentProvider):
    """Offline provider: projects the teacher's alignments onto the student.

    Teacher and student tokens are aligned with Biopython's pairwise aligner
    (comment with comment, code with code) and each teacher alignment is
    carried over to the identical student tokens. Without a teacher the
    response has no alignments. The JSON answer is streamed one alignment
    per chunk.
    """

    def __init__(self, aligner=None) -> None:
        super().__init__()
        self.aligner = aligner if aligner is not None else make_aligner()

    def stream(
        self,
        student: TokenPair,
        teacher: Optional[TokenPair],
        teacher_alignments: Optional[Sequence[Alignment]],
    ) -> Iterator[str]:
        projected: List[Alignment] = []
        if teacher is not None and teacher_alignments:
            projected = self._project(student, teacher, teacher_alignments)

        yield '{"alignments": ['
        for i, alignment in enumerate(projected):
            prefix = ", " if i else ""
            yield prefix + json.dumps(alignment.model_dump(by_alias=True), ensure_ascii=False)
        yield "]}"

    def _project(
        self,
        student: TokenPair,
        teacher: TokenPair,
        teacher_alignments: Sequence[Alignment],
    ) -> List[Alignment]:
        comment_index = {s: i for i, s in enumerate(teacher.comment_tokens)}
        code_index = {s: i for i, s in enumerate(teacher.code_tokens)}
        teacher_labeling = to_alignment_with_indices(
            teacher_alignments, (comment_index, code_index)
        )

        def bases(pair: TokenPair):
            return (
                [symbol_base(s) for s in pair.comment_tokens],
                [symbol_base(s) for s in pair.code_tokens],
            )

        labeling = project_labeling(
            bases(teacher), teacher_labeling, bases(student), self.aligner
        )
        return to_alignment_with_unique_tokens(
            student.code_tokens, student.comment_tokens, labeling
        )


def request_suggestion(
    provider: AlignmentProvider,
    student_comment_tokens: Sequence[str],
    student_code_tokens: Sequence[str],
    teacher_comment_tokens: Optional[Sequence[str]] = None,
    teacher_code_tokens: Optional[Sequence[str]] = None,
    teacher_labeling: Optional[Sequence[Sequence[Sequence[int]]]] = None,
    callbacks: Optional[StreamCallbacks] = None,
) -> Optional[List[List[List[int]]]]:
    """Ask ``provider`` for a student labeling, in dense token indices.

    Raw tokenizer output goes in (special tokens and sub-word markers
    included); ``labeling[label] = [comment, code]`` comes out, ready for
    ``LabelingEngine.set_labeling_on_sample``. Symbols in the answer that do
    not name a student token are dropped. Returns ``None`` when the request
    failed and ``callbacks.on_error`` handled it.
    """
    comment_symbols, comment_map = to_unique_symbols(student_comment_tokens, is_comment=True)
    code_symbols, code_map = to_unique_symbols(student_code_tokens, is_comment=False)
    student = TokenPair(comment_tokens=comment_symbols, code_tokens=code_symbols)

    teacher = None
    teacher_alignments = None
    if (
        teacher_comment_tokens is not None
        and teacher_code_tokens is not None
        and teacher_labeling is not None
    ):
        teacher_comment, _ = to_unique_symbols(teacher_comment_tokens, is_comment=True)
        teacher_code, _ = to_unique_symbols(teacher_code_tokens, is_comment=False)
        teacher = TokenPair(comment_tokens=teacher_comment, code_tokens=teacher_code)
        teacher_alignments = to_alignment_with_unique_tokens(
            teacher_code, teacher_comment, teacher_labeling
        )
        if not teacher_labeling:
            log.warning("The teacher has an empty alignment")

    response = provider.generate_alignment(student, teacher, teacher_alignments, callbacks)
    if response is None:
        return None
    return to_alignment_with_indices(response.alignments, (comment_map, code_map))

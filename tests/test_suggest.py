import json

import pytest

from alignment_labels.errors import AlignmentRequestError
from alignment_labels.suggest import (
    AlignmentProvider,
    StreamCallbacks,
    TeacherProjectionProvider,
    TokenPair,
    parse_alignment_response,
    request_suggestion,
    symbol_base,
)

TEACHER_COMMENT = ["<s>", "Return", "Ġthe", "Ġsum", "</s>"]
TEACHER_CODE = ["<s>", "def", "Ġadd", "(", "a", ",", "Ġb", "):", "Ġreturn", "Ġa", "Ġ+", "Ġb", "</s>"]
# "sum" <-> "+", "Return" <-> "return"
TEACHER_LABELING = [[[2], [9]], [[0], [7]]]

STUDENT_COMMENT = ["<s>", "Return", "Ġthe", "Ġtotal", "</s>"]
STUDENT_CODE = ["<s>", "def", "Ġplus", "(", "x", ",", "Ġy", "):", "Ġreturn", "Ġx", "Ġ+", "Ġy", "</s>"]


class _CannedProvider(AlignmentProvider):
    def __init__(self, chunks):
        super().__init__()
        self.chunks = chunks
        self.requests = []

    def stream(self, student, teacher, teacher_alignments):
        self.requests.append((student, teacher, teacher_alignments))
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk


def _recording_callbacks(events):
    return StreamCallbacks(
        on_data=lambda chunk: events.append(("data", chunk)),
        on_error=lambda exc: events.append(("error", exc)),
        on_finish=lambda response: events.append(("finish", response)),
    )


def test_symbol_base():
    assert symbol_base("a▲2") == "a"
    assert symbol_base("x■13") == "x"
    assert symbol_base("plain") == "plain"


def test_parse_alignment_response_extracts_json_object():
    text = 'Sure:\n{"alignments": [{"commentToken": ["a"], "codeToken": ["b"]}]}\nDone.'
    response = parse_alignment_response(text)
    assert response.alignments[0].code_token == ["b"]


@pytest.mark.parametrize(
    "text",
    ["no json at all", '{"alignments": [', '{"alignments": [{"commentToken": "a"}]}', "{not json}"],
)
def test_parse_alignment_response_rejects_bad_payloads(text):
    with pytest.raises(AlignmentRequestError):
        parse_alignment_response(text)


def test_projection_suggestion_maps_back_to_student_indices():
    events = []
    labeling = request_suggestion(
        TeacherProjectionProvider(),
        STUDENT_COMMENT,
        STUDENT_CODE,
        TEACHER_COMMENT,
        TEACHER_CODE,
        TEACHER_LABELING,
        callbacks=_recording_callbacks(events),
    )

    assert labeling == [[[], [9]], [[0], [7]]]

    kinds = [kind for kind, _ in events]
    assert kinds[-1] == "finish"
    assert set(kinds[:-1]) == {"data"}
    streamed = "".join(chunk for kind, chunk in events if kind == "data")
    assert json.loads(streamed)["alignments"][1] == {
        "commentToken": ["Return"],
        "codeToken": ["return"],
    }


def test_projection_without_teacher_yields_no_alignments():
    labeling = request_suggestion(TeacherProjectionProvider(), STUDENT_COMMENT, STUDENT_CODE)
    assert labeling == []


def test_chunks_are_delivered_in_order_before_finish():
    chunks = ['{"alignments": [', '{"commentToken": ["Return"], ', '"codeToken": ["return"]}', "]}"]
    events = []
    provider = _CannedProvider(chunks)
    response = provider.generate_alignment(
        TokenPair(["Return"], ["return"]), callbacks=_recording_callbacks(events)
    )

    assert [chunk for kind, chunk in events[:-1]] == chunks
    assert events[-1] == ("finish", response)


def test_teacher_is_only_sent_with_its_alignments():
    provider = _CannedProvider(['{"alignments": []}'])
    provider.generate_alignment(TokenPair([], []), teacher=TokenPair(["a"], ["b"]))
    assert provider.requests[0][1] is None
    assert provider.requests[0][2] is None


def test_unknown_symbols_in_answer_are_dropped():
    answer = '{"alignments": [{"commentToken": ["nope", "Return"], "codeToken": ["return", "y■9"]}]}'
    labeling = request_suggestion(_CannedProvider([answer]), STUDENT_COMMENT, STUDENT_CODE)
    assert labeling == [[[0], [7]]]


def test_errors_go_to_on_error():
    events = []
    provider = _CannedProvider(["{", RuntimeError("connection reset")])
    result = provider.generate_alignment(TokenPair([], []), callbacks=_recording_callbacks(events))

    assert result is None
    assert events[0] == ("data", "{")
    assert events[1][0] == "error"
    assert str(events[1][1]) == "connection reset"
    assert all(kind != "finish" for kind, _ in events)


def test_errors_are_raised_without_on_error():
    provider = _CannedProvider(["garbage"])
    with pytest.raises(AlignmentRequestError):
        provider.generate_alignment(TokenPair([], []))

    # the provider is usable again afterwards
    provider.chunks = ['{"alignments": []}']
    assert provider.generate_alignment(TokenPair([], [])).alignments == []


def test_request_suggestion_returns_none_when_error_is_handled():
    errors = []
    labeling = request_suggestion(
        _CannedProvider(["garbage"]),
        STUDENT_COMMENT,
        STUDENT_CODE,
        callbacks=StreamCallbacks(on_error=errors.append),
    )
    assert labeling is None
    assert isinstance(errors[0], AlignmentRequestError)


def test_overlapping_request_is_rejected():
    inner_errors = []

    class _Reentrant(AlignmentProvider):
        def stream(self, student, teacher, teacher_alignments):
            self.generate_alignment(student, callbacks=StreamCallbacks(on_error=inner_errors.append))
            yield '{"alignments": []}'

    response = _Reentrant().generate_alignment(TokenPair([], []))
    assert response.alignments == []
    assert len(inner_errors) == 1
    assert isinstance(inner_errors[0], AlignmentRequestError)

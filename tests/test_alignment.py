from alignment_labels.alignment import align_tokens, index_mapping, make_aligner, project_labeling


def test_make_aligner_defaults():
    aligner = make_aligner()
    assert aligner.mode == "global"
    assert aligner.match_score == 2
    assert aligner.mismatch_score == -2
    assert aligner.open_gap_score == -0.5
    assert aligner.extend_gap_score == -0.1


def test_make_aligner_with_explicit_mode():
    aligner = make_aligner(mode="local")
    assert aligner.mode == "local"


def test_make_aligner_gaps_rather_than_pairs_unequal_tokens():
    alignment = make_aligner().align(["x"], ["y"])[0]
    assert alignment.score == -1
    assert len(alignment.aligned[0]) == 0


def test_align_tokens_pairs_identical_tokens():
    source = ["def", "add", "(", "a", ")"]
    target = ["def", "sum", "(", "a", ")"]
    assert align_tokens(source, target) == [(0, 0), (2, 2), (3, 3), (4, 4)]


def test_align_tokens_handles_insertions():
    source = ["return", "a"]
    target = ["return", "self", ".", "a"]
    assert index_mapping(source, target) == {0: 0, 1: 3}


def test_align_tokens_empty():
    assert align_tokens([], ["a"]) == []
    assert align_tokens(["a"], []) == []


def test_project_labeling():
    teacher = (
        ["return", "the", "sum"],
        ["def", "add", "(", "a", ",", "b", ")", ":", "return", "a", "+", "b"],
    )
    student = (
        ["return", "the", "total"],
        ["def", "plus", "(", "x", ",", "y", ")", ":", "return", "x", "+", "y"],
    )
    teacher_labeling = [[[2], [10]], [[0], [8]], [[2], [1]]]
    assert project_labeling(teacher, teacher_labeling, student) == [
        [[], [10]],
        [[0], [8]],
    ]

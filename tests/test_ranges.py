from alignment_labels.ranges import (
    TokenRanges,
    expand_ranges,
    indices_to_match,
    match_to_indices,
    reduce_to_ranges,
)


def test_reduce_merges_maximal_runs():
    assert reduce_to_ranges([1, 2, 3, 7, 8, 10]) == [1, 3, 7, 8, 10, 10]


def test_reduce_sorts_and_absorbs_duplicates():
    assert reduce_to_ranges([5, 3, 4, 3]) == [3, 5]
    assert reduce_to_ranges([2, 2, 2]) == [2, 2]
    assert reduce_to_ranges([4, 1, 1, 2]) == [1, 2, 4, 4]


def test_reduce_does_not_mutate_input():
    indices = [3, 1, 2]
    reduce_to_ranges(indices)
    assert indices == [3, 1, 2]


def test_reduce_empty_and_single():
    assert reduce_to_ranges([]) == []
    assert TokenRanges.reduce_from([]).value == []
    assert reduce_to_ranges([9]) == [9, 9]


def test_expand_pairs_in_order():
    assert expand_ranges([3, 5]) == [3, 4, 5]
    assert expand_ranges([7, 8, 0, 1]) == [7, 8, 0, 1]
    assert expand_ranges([4, 4]) == [4]


def test_expand_ignores_trailing_unpaired_and_empty():
    assert expand_ranges([1, 2, 9]) == [1, 2]
    assert expand_ranges([5]) == []
    assert expand_ranges([]) == []


def test_round_trip_is_set_preserving():
    values = [12, 0, 5, 3, 4, 3, 11, 30]
    assert set(expand_ranges(reduce_to_ranges(values))) == set(values)
    assert expand_ranges(reduce_to_ranges([5, 3, 4, 3])) == [3, 4, 5]


def test_token_ranges_object():
    ranges = TokenRanges.reduce_from([0, 1, 2, 6])
    assert ranges == TokenRanges([0, 2, 6, 6])
    assert ranges.expand() == [0, 1, 2, 6]


def test_match_and_indices_conversion():
    match = [[[0, 2], [1, 1]], [[], [4, 5]]]
    indices = match_to_indices(match)
    assert indices == [[[0, 1, 2], [1]], [[], [4, 5]]]
    assert indices_to_match(indices) == match


def test_indices_to_match_tolerates_missing_groups():
    assert indices_to_match([[None, [2, 1]], []]) == [[[], [1, 2]], []]

from gammaeff.analysis.compare import compare_sequences, same_sequence


def test_same_sequence_is_order_and_size_sensitive():
    assert same_sequence(["A", "B", "C"], ["A", "B", "C"])
    assert not same_sequence(["A", "B", "C"], ["C", "B", "A"])
    assert not same_sequence(["A", "B"], ["A", "B", "C"])


def test_full_match():
    res = compare_sequences({7: (5, 7)}, {1: (5, 7)})
    assert res.matched == 1
    assert res.fully_matched
    assert res.pairs == [(7, 1)]


def test_size_mismatch_is_not_a_match():
    res = compare_sequences({0: (5, 7, 9)}, {1: (5, 7)})
    assert res.matched == 0
    assert not res.fully_matched


def test_reversed_order_is_not_a_match():
    res = compare_sequences({0: (7, 5)}, {1: (5, 7)})
    assert res.matched == 0


def test_partial_match_is_not_fully_matched():
    res = compare_sequences({0: (1,), 1: (2, 3)}, {1: (1,), 2: (3, 2)})
    assert res.matched == 1
    assert not res.fully_matched


def test_identical_candidates_double_count_one_truth_gamma():
    res = compare_sequences({0: (1, 2), 1: (1, 2)}, {1: (1, 2), 2: (4,)})
    assert res.matched == 2
    # matched == n_truth although gamma 2 was never found
    assert res.fully_matched
    assert res.pairs == [(0, 1), (1, 1)]


def test_no_gammas_on_either_side():
    res = compare_sequences({}, {})
    assert res.no_gammas
    assert not res.fully_matched


def test_empty_truth_is_never_fully_matched():
    res = compare_sequences({0: (1,)}, {})
    assert not res.no_gammas
    assert not res.fully_matched

import alignment_labels as pkg


def test_top_level_exports():
    for name in ("LabelingEngine", "reconcile_tokens", "to_unique_symbols", "make_aligner"):
        assert name in pkg.__all__
    assert callable(pkg.reconcile_tokens)
    assert callable(pkg.make_aligner)
    assert pkg.COMMENT_GROUP == 0
    assert pkg.CODE_GROUP == 1

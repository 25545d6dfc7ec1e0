from performance_analyzer.scope import filter_transactions, in_scope

PATH = "수학|함수|일차함수|기울기"


def test_prefix_at_any_level_selects():
    assert in_scope(PATH, ["수학"])
    assert in_scope(PATH, ["수학|함수"])
    assert in_scope(PATH, ["과학", "수학|함수|일차함수"])
    assert not in_scope(PATH, ["수학|도형"])


def test_empty_selection_selects_nothing():
    assert not in_scope(PATH, [])
    assert not in_scope("", ["수학"])


def test_filter_transactions_returns_new_list(catalog, config, make_transaction):
    known = make_transaction("2024-03-04T09:00:00.000Z", True, exam_key="공통수학1|M1", number=1)
    unknown = make_transaction("2024-03-04T09:00:00.000Z", True, exam_key="공통수학1|M1", number=99)
    log = [known, unknown]

    kept = filter_transactions(log, catalog, config.selected_sub_units)

    assert kept == [known]
    assert log == [known, unknown]
    assert filter_transactions(log, catalog, []) == []

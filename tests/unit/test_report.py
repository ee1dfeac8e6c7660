from types import SimpleNamespace

from fieldscribe.services.report import report_columns, pivot_results
from fieldscribe.services.schema_tree import SchemaTree


def _tree():
    tree = SchemaTree()
    tree.add("분류", item_id="ITEM_CLASS")
    risk = tree.add("위험성", item_id="ITEM_RISK")
    tree.add("빈도", "1~5", parent=risk, item_id="ITEM_FREQ")
    tree.add("원인", item_id="ITEM_CAUSE")
    return tree


def _result(item_id, value):
    return SimpleNamespace(template_item_id=item_id, result_value=value, legal_basis=None, solution=None)


def test_columns_are_leaves_with_hierarchical_labels():
    cols = report_columns(_tree())
    assert [c["template_item_id"] for c in cols] == ["ITEM_CLASS", "ITEM_FREQ", "ITEM_CAUSE"]
    assert cols[1]["header"] == "위험성 > 빈도"
    assert cols[1]["default_value"] == "1~5"


def test_rows_align_by_occurrence_index():
    cols = report_columns(_tree())
    results = [
        _result("ITEM_CLASS", "감전"),
        _result("ITEM_CAUSE", "피복 손상"),
        _result("ITEM_CLASS", "화상"),
        _result("ITEM_CAUSE", "덮개 없음"),
    ]
    rows = pivot_results(cols, results)
    assert len(rows) == 2
    assert rows[0]["ITEM_CLASS"]["result_value"] == "감전"
    assert rows[0]["ITEM_CAUSE"]["result_value"] == "피복 손상"
    assert rows[1]["ITEM_CLASS"]["result_value"] == "화상"
    assert rows[1]["ITEM_CAUSE"]["result_value"] == "덮개 없음"
    assert rows[0]["ITEM_FREQ"] is None


def test_row_count_is_longest_group():
    cols = report_columns(_tree())
    results = [_result("ITEM_CLASS", "a"), _result("ITEM_CLASS", "b"), _result("ITEM_CLASS", "c"),
               _result("ITEM_CAUSE", "x")]
    rows = pivot_results(cols, results)
    assert len(rows) == 3
    assert rows[2]["ITEM_CAUSE"] is None


def test_no_results_no_rows():
    assert pivot_results(report_columns(_tree()), []) == []

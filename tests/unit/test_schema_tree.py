"""Tests for the arena-backed schema tree."""

from types import SimpleNamespace

from fieldscribe.services.schema_tree import SchemaTree

COLUMNS = [
    {"header_name": "작업공정", "default_value": None, "children": []},
    {"header_name": "위험성", "children": [
        {"header_name": "빈도", "default_value": "1~5"},
        {"header_name": "강도", "default_value": "1~4"},
    ]},
    {"header_name": "  ", "children": [{"header_name": "고아"}]},
    {"header_name": "개선대책"},
]


def _row(id, header, sort_order=0, parent_id=None, default_value=None):
    return SimpleNamespace(
        id=id, header_name=header, sort_order=sort_order,
        parent_id=parent_id, default_value=default_value,
    )


def test_from_columns_builds_nested_arena():
    tree = SchemaTree.from_columns(COLUMNS)
    assert len(tree) == 5
    assert [tree.nodes[i].header_name for i in tree.roots] == ["작업공정", "위험성", "개선대책"]

    risk = tree.roots[1]
    assert [tree.nodes[c].header_name for c in tree.nodes[risk].children] == ["빈도", "강도"]
    assert [tree.nodes[c].sort_order for c in tree.nodes[risk].children] == [0, 1]
    assert all(tree.nodes[c].parent == risk for c in tree.nodes[risk].children)


def test_blank_headers_are_skipped_with_their_children():
    tree = SchemaTree.from_columns(COLUMNS)
    headers = [n.header_name for n in tree.nodes]
    assert "고아" not in headers


def test_walk_is_preorder_parent_first():
    tree = SchemaTree.from_columns(COLUMNS)
    order = [tree.nodes[i].header_name for i in tree.walk()]
    assert order == ["작업공정", "위험성", "빈도", "강도", "개선대책"]


def test_leaves_and_labels():
    tree = SchemaTree.from_columns(COLUMNS)
    labels = [tree.label(i) for i in tree.leaves()]
    assert labels == ["작업공정", "위험성 > 빈도", "위험성 > 강도", "개선대책"]


def test_default_values_preserved():
    tree = SchemaTree.from_columns(COLUMNS)
    defaults = {tree.nodes[i].header_name: tree.nodes[i].default_value for i in tree.leaves()}
    assert defaults["빈도"] == "1~5"
    assert defaults["작업공정"] is None


def test_shape_is_deterministic():
    assert SchemaTree.from_columns(COLUMNS).shape() == SchemaTree.from_columns(COLUMNS).shape()


def test_from_items_orders_children_by_sort_order():
    rows = [
        _row("c2", "강도", 1, "p"),
        _row("p", "위험성", 1),
        _row("c1", "빈도", 0, "p"),
        _row("r0", "분류", 0),
    ]
    tree = SchemaTree.from_items(rows)
    assert tree.shape() == [
        ("분류", 0, []),
        ("위험성", 1, [("빈도", 0, []), ("강도", 1, [])]),
    ]
    assert tree.leaf_ids() == {"r0", "c1", "c2"}


def test_from_items_missing_parent_becomes_root():
    tree = SchemaTree.from_items([_row("a", "A", 0, "ghost"), _row("b", "B", 0, "a")])
    assert [tree.nodes[i].item_id for i in tree.roots] == ["a"]
    assert tree.label(tree.leaves()[0]) == "A > B"


def test_from_items_cycle_does_not_loop():
    rows = [_row("a", "A", 0, "b"), _row("b", "B", 1, "a"), _row("c", "C", 0, "a")]
    tree = SchemaTree.from_items(rows)
    assert len(tree) == 3
    assert {tree.nodes[i].item_id for i in tree.roots} == {"a", "b"}
    assert tree.label(tree.leaves()[0]) == "A > C"


def test_to_nested_round_trips_shape():
    tree = SchemaTree.from_columns(COLUMNS)
    nested = tree.to_nested()
    assert SchemaTree.from_columns(nested).shape() == tree.shape()

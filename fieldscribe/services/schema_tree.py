"""Arena-backed template schema tree.

Nodes live in a flat list and refer to each other by index; children are
index lists kept in sort_order. Building from the vision model's nested
columns and from persisted TemplateItem rows both land in the same arena,
so flattening and rendering are plain walks independent of the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator


@dataclass
class SchemaNode:
    header_name: str
    default_value: str | None = None
    sort_order: int = 0
    parent: int | None = None
    children: list[int] = field(default_factory=list)
    item_id: str | None = None  # persisted TemplateItem.id, once known


class SchemaTree:
    def __init__(self):
        self.nodes: list[SchemaNode] = []
        self.roots: list[int] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def add(
        self,
        header_name: str,
        default_value: str | None = None,
        parent: int | None = None,
        sort_order: int | None = None,
        item_id: str | None = None,
    ) -> int:
        siblings = self.roots if parent is None else self.nodes[parent].children
        if sort_order is None:
            sort_order = len(siblings)
        idx = len(self.nodes)
        self.nodes.append(SchemaNode(
            header_name=header_name,
            default_value=default_value,
            sort_order=sort_order,
            parent=parent,
            item_id=item_id,
        ))
        siblings.append(idx)
        return idx

    # ── Builders ─────────────────────────────────────────

    @classmethod
    def from_columns(cls, columns: Iterable[dict]) -> "SchemaTree":
        """Build from the vision model's nested `columns` payload.

        Entries without a usable header are skipped; their children are
        skipped with them.
        """
        tree = cls()

        def _add_all(entries: Iterable[Any], parent: int | None):
            for entry in entries or []:
                if not isinstance(entry, dict):
                    continue
                header = str(entry.get("header_name") or "").strip()
                if not header:
                    continue
                default = entry.get("default_value")
                default = str(default).strip() if default not in (None, "") else None
                idx = tree.add(header, default or None, parent=parent)
                children = entry.get("children")
                if isinstance(children, list):
                    _add_all(children, idx)

        _add_all(columns, None)
        return tree

    @classmethod
    def from_items(cls, items: Iterable[Any]) -> "SchemaTree":
        """Build from TemplateItem rows (anything with id/parent_id/header_name/...).

        Rows whose parent is missing, or whose ancestry loops back on itself,
        are treated as roots.
        """
        rows = sorted(items, key=lambda r: (r.sort_order or 0))
        by_id = {r.id: r for r in rows}

        def _parent_of(row) -> str | None:
            pid = row.parent_id
            if pid is None or pid not in by_id:
                return None
            seen = set()
            while pid is not None and pid in by_id and pid not in seen:
                if pid == row.id:
                    return None  # row sits on a cycle
                seen.add(pid)
                pid = by_id[pid].parent_id
            return row.parent_id

        parents = {r.id: _parent_of(r) for r in rows}
        tree = cls()
        index: dict[str, int] = {}

        def _insert(row):
            pid = parents[row.id]
            parent_idx = None
            if pid is not None:
                if pid not in index:
                    _insert(by_id[pid])
                parent_idx = index[pid]
            index[row.id] = tree.add(
                row.header_name, row.default_value,
                parent=parent_idx, sort_order=row.sort_order or 0, item_id=row.id,
            )

        for row in rows:
            if row.id not in index:
                _insert(row)

        # Parents pulled in early by a child may sit out of order among siblings.
        key = lambda i: (tree.nodes[i].sort_order, i)
        tree.roots.sort(key=key)
        for node in tree.nodes:
            node.children.sort(key=key)
        return tree

    # ── Walks ────────────────────────────────────────────

    def walk(self) -> Iterator[int]:
        """Depth-first pre-order: every parent is yielded before its children."""
        stack = list(reversed(self.roots))
        while stack:
            idx = stack.pop()
            yield idx
            stack.extend(reversed(self.nodes[idx].children))

    def is_leaf(self, idx: int) -> bool:
        return not self.nodes[idx].children

    def leaves(self) -> list[int]:
        return [idx for idx in self.walk() if self.is_leaf(idx)]

    def path(self, idx: int) -> list[str]:
        names = []
        cur: int | None = idx
        while cur is not None:
            names.append(self.nodes[cur].header_name)
            cur = self.nodes[cur].parent
        return list(reversed(names))

    def label(self, idx: int) -> str:
        return " > ".join(self.path(idx))

    def leaf_ids(self) -> set[str]:
        return {self.nodes[i].item_id for i in self.leaves() if self.nodes[i].item_id}

    def shape(self) -> list:
        """Structural fingerprint: [(header, sort_order, [children...]), ...]."""
        def _shape(idx: int) -> tuple:
            n = self.nodes[idx]
            return (n.header_name, n.sort_order, [_shape(c) for c in n.children])
        return [_shape(r) for r in self.roots]

    def to_nested(self) -> list[dict]:
        def _node(idx: int) -> dict:
            n = self.nodes[idx]
            return {
                "id": n.item_id,
                "header_name": n.header_name,
                "default_value": n.default_value,
                "sort_order": n.sort_order,
                "children": [_node(c) for c in n.children],
            }
        return [_node(r) for r in self.roots]

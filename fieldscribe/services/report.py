"""Pivot stored answers into report rows.

Answers are grouped per template item in stored order; the report has as
many rows as the longest group, and row i takes the i-th answer of each item.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from fieldscribe.db import crud
from fieldscribe.models.assessment import Assessment
from fieldscribe.services.schema_tree import SchemaTree


def report_columns(tree: SchemaTree) -> list[dict]:
    columns = []
    for idx in tree.leaves():
        node = tree.nodes[idx]
        if node.item_id:
            columns.append({
                "template_item_id": node.item_id,
                "header": tree.label(idx),
                "default_value": node.default_value,
            })
    return columns


def pivot_results(columns: list[dict], results) -> list[dict]:
    """Align results (objects with template_item_id/result_value/legal_basis/solution)
    into rows keyed by template_item_id. Missing cells are None."""
    groups: dict[str, list] = {}
    for r in results:
        groups.setdefault(r.template_item_id, []).append(r)

    row_count = max((len(g) for g in groups.values()), default=0)
    rows = []
    for i in range(row_count):
        row = {}
        for col in columns:
            group = groups.get(col["template_item_id"], [])
            if i < len(group):
                r = group[i]
                row[col["template_item_id"]] = {
                    "result_value": r.result_value,
                    "legal_basis": r.legal_basis,
                    "solution": r.solution,
                }
            else:
                row[col["template_item_id"]] = None
        rows.append(row)
    return rows


async def build_report(db: AsyncSession, assessment: Assessment) -> dict:
    tree = await crud.load_schema_tree(db, assessment.template_id)
    columns = report_columns(tree)
    results = await crud.list_results(db, assessment.id)
    return {
        "assessment_id": assessment.id,
        "title": assessment.title,
        "status": assessment.status,
        "columns": columns,
        "rows": pivot_results(columns, results),
    }

"""
Conditional writes for transition plans.

The precondition checked by the guard is repeated in the UPDATE's WHERE
clause, so a concurrent change between read and write shows up as a zero
rowcount instead of a silently overwritten row.
"""

from typing import Any, List

from sqlalchemy import update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.domain.lifecycle.transition_applier import TransitionPlan
from parcel_backend.app.models.parcel import Parcel


def precondition_clauses(plan: TransitionPlan) -> List[Any]:
    clauses = []
    for column_name, allowed in plan.expected.items():
        column = getattr(Parcel, column_name)
        values = [v for v in allowed if v is not None]
        clause = column.in_(values) if values else None
        if None in allowed:
            clause = column.is_(None) if clause is None else or_(column.is_(None), clause)
        clauses.append(clause)
    return clauses


async def apply_plan(db: AsyncSession, plan: TransitionPlan, parcel_id: int = None) -> int:
    """
    Execute `plan` as one UPDATE and return the number of rows it matched.

    With `parcel_id` the update targets a single parcel; without it the
    plan's precondition alone selects the rows (bulk cashout).
    The caller owns the commit.
    """
    stmt = update(Parcel).where(*precondition_clauses(plan))
    if parcel_id is not None:
        stmt = stmt.where(Parcel.id == parcel_id)
    stmt = stmt.values(**plan.values).execution_options(synchronize_session=False)

    result = await db.execute(stmt)
    return result.rowcount

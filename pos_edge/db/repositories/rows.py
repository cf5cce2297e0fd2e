# pos_edge/db/repositories/rows.py
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type
from uuid import UUID

from sqlalchemy import inspect, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from pos_edge.db.base import Base


def row_to_dict(obj: Base) -> Dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def _column(model: Type[Base], name: str):
    try:
        return getattr(model, name)
    except AttributeError:
        raise ValueError(f"{model.__tablename__} has no column {name!r}") from None


def _apply_filters(stmt, model: Type[Base], filters: Optional[Mapping[str, Any]]):
    for name, value in (filters or {}).items():
        column = _column(model, name)
        if isinstance(value, (list, tuple, set, frozenset)):
            stmt = stmt.where(column.in_(list(value)))
        else:
            stmt = stmt.where(column == value)
    return stmt


async def select_rows(
    db: AsyncSession,
    model: Type[Base],
    filters: Optional[Mapping[str, Any]] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
) -> Sequence[Base]:
    stmt = _apply_filters(select(model), model, filters)
    if order_by:
        column = _column(model, order_by)
        stmt = stmt.order_by(column.desc() if descending else column.asc())
    result = await db.execute(stmt)
    return result.scalars().all()


async def get_row(
    db: AsyncSession,
    model: Type[Base],
    row_id: UUID,
    filters: Optional[Mapping[str, Any]] = None,
) -> Optional[Base]:
    stmt = _apply_filters(select(model).where(model.id == row_id), model, filters)
    # reload even when the identity map already holds the row
    stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def insert_rows(
    db: AsyncSession,
    model: Type[Base],
    rows: Iterable[Mapping[str, Any]],
) -> List[Base]:
    objs = [model(**dict(row)) for row in rows]
    db.add_all(objs)
    await db.commit()
    for obj in objs:
        await db.refresh(obj)
    return objs


async def update_row(
    db: AsyncSession,
    model: Type[Base],
    row_id: UUID,
    values: Mapping[str, Any],
    filters: Optional[Mapping[str, Any]] = None,
) -> Optional[Base]:
    obj = await get_row(db, model, row_id, filters)
    if obj is None:
        return None

    for name, value in values.items():
        _column(model, name)
        setattr(obj, name, value)

    await db.commit()
    await db.refresh(obj)
    return obj


async def decrement_column(
    db: AsyncSession,
    model: Type[Base],
    row_id: UUID,
    name: str,
    amount: int,
    filters: Optional[Mapping[str, Any]] = None,
    floor: Optional[int] = 0,
) -> Optional[Base]:
    """Subtract ``amount`` from a column in a single conditional UPDATE.

    The row is left untouched and ``None`` is returned when it does not
    match or when the result would drop below ``floor``.
    """
    column = _column(model, name)
    stmt = _apply_filters(update(model).where(model.id == row_id), model, filters)
    if floor is not None:
        stmt = stmt.where(column - amount >= floor)
    stmt = stmt.values({name: column - amount}).execution_options(synchronize_session=False)

    result = await db.execute(stmt)
    await db.commit()
    if result.rowcount == 0:
        return None
    return await get_row(db, model, row_id)


async def delete_row(
    db: AsyncSession,
    model: Type[Base],
    row_id: UUID,
    filters: Optional[Mapping[str, Any]] = None,
) -> Optional[Base]:
    obj = await get_row(db, model, row_id, filters)
    if obj is None:
        return None

    await db.delete(obj)
    await db.commit()
    return obj

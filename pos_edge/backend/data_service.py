# pos_edge/backend/data_service.py
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Type
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pos_edge.backend.feed import ChangeEvent, ChangeFeed, EventType, Handler, Subscription
from pos_edge.core.errors import BackendError
from pos_edge.db.base import Base
from pos_edge.db.models.accounts import Account
from pos_edge.db.models.products import Product
from pos_edge.db.models.transaction_items import TransactionItem
from pos_edge.db.models.transactions import Transaction
from pos_edge.db.repositories.rows import (
    decrement_column,
    delete_row,
    get_row,
    insert_rows,
    row_to_dict,
    select_rows,
    update_row,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

TABLES: Dict[str, Type[Base]] = {
    "accounts": Account,
    "products": Product,
    "transactions": Transaction,
    "transaction_items": TransactionItem,
}


class DataService(Protocol):
    """Table-oriented contract of the backend the edge node talks to."""

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]: ...

    async def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[Row]: ...

    async def update(
        self,
        table: str,
        row_id: UUID,
        values: Mapping[str, Any],
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Row]: ...

    async def decrement(
        self,
        table: str,
        row_id: UUID,
        column: str,
        amount: int,
        filters: Optional[Mapping[str, Any]] = None,
        floor: Optional[int] = 0,
    ) -> Optional[Row]: ...

    async def delete(
        self,
        table: str,
        row_id: UUID,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Row]: ...

    def subscribe(
        self,
        table: str,
        handler: Handler,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Subscription: ...


def get_model(table: str) -> Type[Base]:
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f"Unknown table {table!r}") from None


class SqlDataService:
    """``DataService`` backed by a SQLAlchemy async session factory.

    Each call runs in its own session. Successful writes are published on
    ``feed`` so that every subscriber, including the writer itself, sees
    the change the same way a remote terminal would.
    """

    def __init__(self, session_factory: async_sessionmaker, feed: Optional[ChangeFeed] = None):
        self._session_factory = session_factory
        self.feed = feed or ChangeFeed()

    @asynccontextmanager
    async def _session(self, action: str, table: str):
        async with self._session_factory() as db:
            try:
                yield db
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.warning("%s on %s failed: %s", action, table, exc)
                raise BackendError(f"{action} on {table} failed: {exc}") from exc

    async def select(self, table, filters=None, order_by=None, descending=False):
        model = get_model(table)
        async with self._session("select", table) as db:
            rows = await select_rows(db, model, filters, order_by, descending)
            return [row_to_dict(row) for row in rows]

    async def insert(self, table, rows):
        model = get_model(table)
        async with self._session("insert", table) as db:
            created = [row_to_dict(obj) for obj in await insert_rows(db, model, rows)]

        for row in created:
            self.feed.publish(ChangeEvent(table, EventType.INSERT, new=row))
        return created

    async def update(self, table, row_id, values, filters=None):
        model = get_model(table)
        async with self._session("update", table) as db:
            current = await get_row(db, model, row_id, filters)
            if current is None:
                return None
            old = row_to_dict(current)
            new = row_to_dict(await update_row(db, model, row_id, values, filters))

        self.feed.publish(ChangeEvent(table, EventType.UPDATE, new=new, old=old))
        return new

    async def decrement(self, table, row_id, column, amount, filters=None, floor=0):
        model = get_model(table)
        async with self._session("decrement", table) as db:
            current = await get_row(db, model, row_id, filters)
            if current is None:
                return None
            old = row_to_dict(current)
            updated = await decrement_column(db, model, row_id, column, amount, filters, floor)
            if updated is None:
                return None
            new = row_to_dict(updated)

        self.feed.publish(ChangeEvent(table, EventType.UPDATE, new=new, old=old))
        return new

    async def delete(self, table, row_id, filters=None):
        model = get_model(table)
        async with self._session("delete", table) as db:
            deleted = await delete_row(db, model, row_id, filters)
            if deleted is None:
                return None
            old = row_to_dict(deleted)

        self.feed.publish(ChangeEvent(table, EventType.DELETE, old=old))
        return old

    def subscribe(self, table, handler, filters=None):
        get_model(table)
        return self.feed.subscribe(table, handler, filters)

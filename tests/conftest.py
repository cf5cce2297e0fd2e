"""
Pytest fixtures for the POS edge tests.

Async scenarios run inside ``asyncio.run``; every scenario opens its own
in-memory SQLite database so engines never outlive their event loop.
"""
import asyncio
import uuid
from contextlib import asynccontextmanager

import pytest

from pos_edge.backend.auth import InMemoryAuthService
from pos_edge.backend.data_service import SqlDataService
from pos_edge.core.config import Settings
from pos_edge.core.errors import BackendError
from pos_edge.db.base import create_schema, make_engine, make_session_factory
from pos_edge.domain.accounts.service import BranchMemory
from pos_edge.domain.catalog.schemas import Category, Product, ProductCreate, Variant
from pos_edge.domain.terminal import Terminal


def run(coro):
    return asyncio.run(coro)


class RecordingDataService(SqlDataService):
    """SqlDataService that records writes and can fail or pause on demand.

    ``fail[(op, table)]`` raises ``BackendError`` for that call;
    ``hooks[(op, table)]`` is awaited before the call runs.
    """

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.calls = []
        self.fail = {}
        self.hooks = {}

    async def _before(self, op, table, **details):
        self.calls.append({"op": op, "table": table, **details})
        hook = self.hooks.pop((op, table), None)
        if hook is not None:
            await hook()
        if (op, table) in self.fail:
            raise BackendError(self.fail[(op, table)])

    def writes(self, op, table):
        return [c for c in self.calls if c["op"] == op and c["table"] == table]

    async def insert(self, table, rows):
        rows = list(rows)
        await self._before("insert", table, rows=rows)
        return await super().insert(table, rows)

    async def update(self, table, row_id, values, filters=None):
        await self._before("update", table, row_id=row_id, values=dict(values), filters=filters)
        return await super().update(table, row_id, values, filters)

    async def decrement(self, table, row_id, column, amount, filters=None, floor=0):
        await self._before("decrement", table, row_id=row_id, amount=amount, filters=filters)
        return await super().decrement(table, row_id, column, amount, filters, floor)

    async def delete(self, table, row_id, filters=None):
        await self._before("delete", table, row_id=row_id, filters=filters)
        return await super().delete(table, row_id, filters)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DB_URL="sqlite+aiosqlite://",
        STATE_DIR=str(tmp_path / "state"),
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def open_backend(settings):
    @asynccontextmanager
    async def _open():
        engine = make_engine(settings.DB_URL)
        await create_schema(engine)
        data = RecordingDataService(make_session_factory(engine))
        try:
            yield data
        finally:
            await engine.dispose()

    return _open


@pytest.fixture
def open_terminal(settings, open_backend):
    @asynccontextmanager
    async def _open(auth=None, **overrides):
        terminal_settings = settings.model_copy(update=overrides)
        async with open_backend() as data:
            terminal = Terminal(
                data,
                auth or InMemoryAuthService(),
                terminal_settings,
                BranchMemory(terminal_settings.STATE_DIR),
            )
            await terminal.start()
            try:
                yield terminal
            finally:
                await terminal.close()

    return _open


def make_product(**overrides) -> Product:
    fields = {
        "id": uuid.uuid4(),
        "branch_id": uuid.uuid4(),
        "name": "Beras Premium 5kg",
        "category": Category.STAPLE,
        "price": 75000,
        "cost": 68000,
        "stock": 25,
        "min_stock": 10,
    }
    fields.update(overrides)
    return Product(**fields)


def product_payload(**overrides) -> ProductCreate:
    fields = {"name": "Kopi Susu", "category": Category.BEVERAGE, "price": 1000, "cost": 600, "stock": 10}
    fields.update(overrides)
    return ProductCreate(**fields)


EXTRA_SHOT = Variant(name="extra", price=500)

# pos_edge/domain/state/sync.py
import logging
from typing import List, Optional
from uuid import UUID

from pos_edge.backend.data_service import DataService
from pos_edge.backend.feed import ChangeEvent, EventType, Subscription
from pos_edge.domain.catalog.schemas import Product
from pos_edge.domain.checkout.schemas import Transaction
from pos_edge.domain.state.store import BranchState

logger = logging.getLogger(__name__)


async def load_products(data: DataService, branch_id: UUID) -> List[Product]:
    rows = await data.select("products", {"branch_id": branch_id}, order_by="name")
    return [Product.model_validate(row) for row in rows]


async def load_transactions(data: DataService, branch_id: UUID) -> List[Transaction]:
    headers = await data.select("transactions", {"branch_id": branch_id}, order_by="date", descending=True)
    if not headers:
        return []

    items = await data.select(
        "transaction_items",
        {"transaction_id": [h["id"] for h in headers]},
        order_by="line_number",
    )
    by_transaction = {}
    for row in items:
        by_transaction.setdefault(row["transaction_id"], []).append(row)
    return [Transaction.from_rows(h, by_transaction.get(h["id"], [])) for h in headers]


async def load_transaction(data: DataService, transaction_id: UUID) -> Optional[Transaction]:
    headers = await data.select("transactions", {"id": transaction_id})
    if not headers:
        return None
    items = await data.select("transaction_items", {"transaction_id": transaction_id}, order_by="line_number")
    return Transaction.from_rows(headers[0], items)


class RealtimeSync:
    """Keeps ``BranchState`` in step with the backend change feed.

    Subscriptions are scoped to one branch and tagged with the state token
    they were opened under; events that land after a branch switch or a
    teardown are dropped.
    """

    def __init__(self, data: DataService, state: BranchState):
        self.data = data
        self.state = state
        self._subscriptions: List[Subscription] = []

    def start(self, branch_id: UUID, token: int) -> None:
        self.stop()

        async def on_product(event: ChangeEvent) -> None:
            await self.handle_product_event(event, token)

        async def on_transaction(event: ChangeEvent) -> None:
            await self.handle_transaction_event(event, token)

        scope = {"branch_id": branch_id}
        self._subscriptions = [
            self.data.subscribe("products", on_product, scope),
            self.data.subscribe("transactions", on_transaction, scope),
        ]
        logger.info("Realtime subscriptions open for branch %s", branch_id)

    def stop(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    async def load(self, branch_id: UUID, token: int) -> None:
        products = await load_products(self.data, branch_id)
        transactions = await load_transactions(self.data, branch_id)
        if not self.state.is_current(token):
            return

        # merge rather than replace, events may already have been applied
        for product in products:
            if self.state.get_product(product.id) is None:
                self.state.apply_product(product)
        known = {t.id for t in self.state.transactions}
        for transaction in reversed(transactions):
            if transaction.id not in known:
                self.state.apply_transaction(transaction)
        self.state.transactions.sort(key=lambda t: t.date, reverse=True)

    async def handle_product_event(self, event: ChangeEvent, token: int) -> None:
        if not self.state.is_current(token):
            return
        logger.debug("Product change received: %s %s", event.type.value, event.record.get("id"))
        if event.type is EventType.DELETE:
            self.state.drop_product(event.old["id"])
        else:
            self.state.apply_product(Product.model_validate(event.new))

    async def handle_transaction_event(self, event: ChangeEvent, token: int) -> None:
        if not self.state.is_current(token):
            return
        logger.debug("Transaction change received: %s %s", event.type.value, event.record.get("id"))
        if event.type is EventType.DELETE:
            self.state.drop_transaction(event.old["id"])
            return

        # the header arrives before its items, so read the whole sale back
        transaction = await load_transaction(self.data, event.new["id"])
        if transaction is None or not self.state.is_current(token):
            return
        current = next((t for t in self.state.transactions if t.id == transaction.id), None)
        if current is not None and len(current.items) > len(transaction.items):
            transaction = transaction.model_copy(update={"items": current.items})
        self.state.apply_transaction(transaction)

# pos_edge/domain/state/store.py
"""
Local copies of the active branch's products and sales history.

Two producers write here: the checkout engine (optimistic updates) and the
realtime handlers (pushed changes). Both go through ``upsert_by_id`` so that
an optimistic write and its realtime echo collapse into one entry whatever
order they arrive in.
"""
import logging
from typing import Dict, List, Optional, TypeVar
from uuid import UUID

from pos_edge.domain.catalog.schemas import Product
from pos_edge.domain.checkout.schemas import Transaction

logger = logging.getLogger(__name__)

Record = TypeVar("Record", Product, Transaction)


def upsert_by_id(records: List[Record], record: Record, prepend: bool = False) -> List[Record]:
    """Replace the entry with the same id, or add ``record`` if there is none."""
    for index, current in enumerate(records):
        if current.id == record.id:
            records[index] = record
            return records
    if prepend:
        records.insert(0, record)
    else:
        records.append(record)
    return records


def remove_by_id(records: List[Record], record_id: UUID) -> List[Record]:
    records[:] = [r for r in records if r.id != record_id]
    return records


class BranchState:
    def __init__(self):
        self.branch_id: Optional[UUID] = None
        self.products: List[Product] = []
        self.transactions: List[Transaction] = []
        self.closed = False
        self._generation = 0

    def reset(self, branch_id: Optional[UUID]) -> int:
        """Switch to ``branch_id`` with empty lists and return the new token.

        Work started under an older token must check ``is_current`` before it
        touches this state again.
        """
        self._generation += 1
        self.branch_id = branch_id
        self.products = []
        self.transactions = []
        logger.info("Local state reset for branch %s", branch_id)
        return self._generation

    def token(self) -> int:
        return self._generation

    def is_current(self, token: int) -> bool:
        return not self.closed and token == self._generation

    def close(self) -> None:
        self.closed = True

    def get_product(self, product_id: UUID) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def stock_snapshot(self) -> Dict[UUID, int]:
        return {p.id: p.stock for p in self.products}

    def apply_product(self, product: Product) -> None:
        if product.branch_id != self.branch_id:
            return
        upsert_by_id(self.products, product)

    def drop_product(self, product_id: UUID) -> None:
        remove_by_id(self.products, product_id)

    def apply_transaction(self, transaction: Transaction) -> None:
        if transaction.branch_id != self.branch_id:
            return
        upsert_by_id(self.transactions, transaction, prepend=True)

    def drop_transaction(self, transaction_id: UUID) -> None:
        remove_by_id(self.transactions, transaction_id)

    def low_stock(self) -> List[Product]:
        return [p for p in self.products if p.is_low_stock]

# pos_edge/domain/checkout/service.py
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from uuid import UUID

from pos_edge.backend.data_service import DataService
from pos_edge.core.config import CommitMode, Settings, StockDecrementMode
from pos_edge.core.errors import (
    BackendError,
    CheckoutFailedError,
    CheckoutInProgressError,
    EmptyCartError,
    NoActiveBranchError,
)
from pos_edge.domain.cart.cart import Cart, CartItem
from pos_edge.domain.cart.pricing import cart_total
from pos_edge.domain.checkout.schemas import (
    CheckoutResult,
    CheckoutState,
    StepFailure,
    Transaction,
    TransactionLine,
)
from pos_edge.domain.state.store import BranchState

logger = logging.getLogger(__name__)


def line_record(item: CartItem) -> TransactionLine:
    return TransactionLine(
        product_id=item.product.id,
        name=item.product.name,
        category=item.product.category.value,
        quantity=item.quantity,
        price_at_sale=item.unit_price,
        cost_at_sale=item.product.cost,
        variants=list(item.selected_variants),
    )


def quantities_by_product(items: Iterable[CartItem]) -> "OrderedDict[UUID, int]":
    """Total quantity per product, folding variant lines back together."""
    totals: "OrderedDict[UUID, int]" = OrderedDict()
    for item in items:
        totals[item.product.id] = totals.get(item.product.id, 0) + item.quantity
    return totals


async def create_transaction(
    data: DataService,
    branch_id: UUID,
    total: int,
    payment_method: str,
    profile_id: Optional[str] = None,
    date: Optional[datetime] = None,
) -> Dict[str, Any]:
    rows = await data.insert(
        "transactions",
        [{
            "branch_id": branch_id,
            "total": total,
            "payment_method": payment_method,
            "date": date or datetime.now(timezone.utc),
            "profile_id": profile_id,
        }],
    )
    return rows[0]


async def add_items_to_transaction(
    data: DataService,
    transaction_id: UUID,
    lines: Sequence[TransactionLine],
) -> List[Dict[str, Any]]:
    return await data.insert(
        "transaction_items",
        [
            {
                "transaction_id": transaction_id,
                "line_number": number,
                **line.model_dump(mode="json", exclude={"product_id"}),
                "product_id": line.product_id,
            }
            for number, line in enumerate(lines, start=1)
        ],
    )


async def decrement_stock(
    data: DataService,
    product_id: UUID,
    branch_id: UUID,
    quantity: int,
    known_stock: int,
    mode: StockDecrementMode = StockDecrementMode.READ_MODIFY_WRITE,
) -> Optional[Dict[str, Any]]:
    """Take ``quantity`` units of a product off the shelf.

    ``read_modify_write`` writes ``known_stock - quantity``: two terminals
    selling the same product concurrently can both start from the same stock
    and the last write wins. ``atomic`` lets the backend subtract in a single
    conditional update that refuses to go below zero.
    """
    scope = {"branch_id": branch_id}
    if mode is StockDecrementMode.ATOMIC:
        return await data.decrement("products", product_id, "stock", quantity, filters=scope, floor=0)
    return await data.update("products", product_id, {"stock": known_stock - quantity}, filters=scope)


class CheckoutEngine:
    """Commits the cart as a sale.

    The commit is a sequence of independent backend writes, tracked as a
    state machine:

        IDLE -> HEADER_PENDING -> HEADER_COMMITTED -> ITEMS_PENDING
             -> STOCK_PENDING -> DONE | PARTIAL_FAILURE

    A failed header insert ends in FAILED and leaves the cart alone. Later
    failures are soft in best-effort mode and end in PARTIAL_FAILURE; in
    strict mode they are compensated and end in ROLLED_BACK.
    """

    def __init__(self, data: DataService, cart: Cart, state: BranchState, settings: Settings):
        self.data = data
        self.cart = cart
        self.state = state
        self.settings = settings
        self.processing = False
        self.current_state = CheckoutState.IDLE

    async def checkout(
        self,
        branch_id: Optional[UUID],
        payment_method: Optional[str] = None,
        profile_id: Optional[str] = None,
        token: Optional[int] = None,
    ) -> CheckoutResult:
        """Commit the cart for ``branch_id``.

        ``branch_id`` and ``token`` are captured by the caller when checkout
        starts; every step uses them even if the active branch changes while
        the writes are in flight. Local state is only touched when ``token``
        is still current.
        """
        if self.processing:
            raise CheckoutInProgressError("A checkout is already in progress")
        if not self.cart:
            raise EmptyCartError("Cart is empty")
        if branch_id is None:
            raise NoActiveBranchError("No active branch selected")

        self.processing = True
        try:
            return await self._commit(
                branch_id,
                payment_method or self.settings.PAYMENT_METHOD,
                profile_id,
                self.state.token() if token is None else token,
            )
        finally:
            self.processing = False

    def _enter(self, result: CheckoutResult, state: CheckoutState) -> None:
        logger.debug("Checkout %s -> %s", result.state.value, state.value)
        result.state = state
        self.current_state = state

    async def _commit(
        self,
        branch_id: UUID,
        payment_method: str,
        profile_id: Optional[str],
        token: int,
    ) -> CheckoutResult:
        # frozen copies; the live cart may change while the writes are awaited
        items = [item.model_copy(deep=True) for item in self.cart.items]
        lines = [line_record(item) for item in items]
        total = cart_total(items)
        sold = quantities_by_product(items)
        # stock as this terminal knew it when checkout started
        known_stock = {item.product.id: item.product.stock for item in items}
        if self.state.is_current(token):
            known_stock.update(
                (pid, stock) for pid, stock in self.state.stock_snapshot().items() if pid in known_stock
            )

        result = CheckoutResult(branch_id=branch_id)

        self._enter(result, CheckoutState.HEADER_PENDING)
        try:
            header = await create_transaction(self.data, branch_id, total, payment_method, profile_id)
        except BackendError as exc:
            self._enter(result, CheckoutState.FAILED)
            logger.error("Transaction failed for branch %s: %s", branch_id, exc)
            raise CheckoutFailedError(f"Transaction failed: {exc}", result) from exc
        self._enter(result, CheckoutState.HEADER_COMMITTED)
        logger.info("Transaction %s created for branch %s, total %s", header["id"], branch_id, total)

        self._enter(result, CheckoutState.ITEMS_PENDING)
        item_rows: List[Dict[str, Any]] = []
        try:
            item_rows = await add_items_to_transaction(self.data, header["id"], lines)
        except BackendError as exc:
            logger.error("Failed to save items for transaction %s: %s", header["id"], exc)
            result.failures.append(StepFailure(step="items", message=str(exc)))

        self._enter(result, CheckoutState.STOCK_PENDING)
        decremented = await self._decrement_all(result, branch_id, sold, known_stock)

        if result.failures and self.settings.COMMIT_MODE is CommitMode.STRICT:
            try:
                await self._compensate(header["id"], item_rows, decremented, branch_id)
            except BackendError as exc:
                self._enter(result, CheckoutState.PARTIAL_FAILURE)
                logger.error("Rollback of transaction %s incomplete: %s", header["id"], exc)
                raise CheckoutFailedError(
                    f"Rollback of transaction {header['id']} incomplete: {exc}", result
                ) from exc
            self._enter(result, CheckoutState.ROLLED_BACK)
            raise CheckoutFailedError(
                f"Transaction {header['id']} rolled back: {result.failures[0].message}",
                result,
            )

        transaction = Transaction(
            id=header["id"],
            branch_id=branch_id,
            date=header["date"],
            payment_method=header["payment_method"],
            total=header["total"],
            profile_id=header["profile_id"],
            items=lines,
        )
        result.transaction = transaction
        self._enter(result, CheckoutState.PARTIAL_FAILURE if result.failures else CheckoutState.DONE)

        if self.state.is_current(token):
            self.state.apply_transaction(transaction)
            self.cart.remove_sold(items)
        else:
            logger.info("Branch switched or closed during checkout of %s, local state left alone", transaction.id)
        return result

    async def _decrement_all(
        self,
        result: CheckoutResult,
        branch_id: UUID,
        sold_by_product: Mapping[UUID, int],
        known_stock: Mapping[UUID, int],
    ) -> List[tuple]:
        mode = self.settings.STOCK_DECREMENT_MODE
        decremented = []
        for product_id, sold in sold_by_product.items():
            try:
                row = await decrement_stock(
                    self.data, product_id, branch_id, sold, known_stock[product_id], mode
                )
            except BackendError as exc:
                logger.error("Failed to update stock for product %s: %s", product_id, exc)
                result.failures.append(StepFailure(step="stock", message=str(exc), product_id=product_id))
                continue
            if row is None:
                message = f"Stock for product {product_id} not updated (missing or insufficient)"
                logger.error(message)
                result.failures.append(StepFailure(step="stock", message=message, product_id=product_id))
                continue
            decremented.append((product_id, sold, known_stock[product_id]))
        return decremented

    async def _compensate(
        self,
        transaction_id: UUID,
        item_rows: Sequence[Dict[str, Any]],
        decremented: Sequence[tuple],
        branch_id: UUID,
    ) -> None:
        scope = {"branch_id": branch_id}
        for product_id, sold, previous in reversed(decremented):
            if self.settings.STOCK_DECREMENT_MODE is StockDecrementMode.ATOMIC:
                await self.data.decrement("products", product_id, "stock", -sold, filters=scope, floor=None)
            else:
                await self.data.update("products", product_id, {"stock": previous}, filters=scope)
        for row in item_rows:
            await self.data.delete("transaction_items", row["id"])
        await self.data.delete("transactions", transaction_id)
        logger.warning("Transaction %s rolled back", transaction_id)

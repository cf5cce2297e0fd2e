# pos_edge/api/v1/routes_checkout.py
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from pos_edge.api.v1.deps import get_terminal
from pos_edge.core.errors import NotFoundError
from pos_edge.domain.checkout.schemas import CheckoutRequest, CheckoutResult, CheckoutStatus, Transaction
from pos_edge.domain.history.service import filter_transactions
from pos_edge.domain.terminal import Terminal

router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])


@router.post("", response_model=CheckoutResult)
async def checkout_endpoint(
    payload: CheckoutRequest,
    terminal: Terminal = Depends(get_terminal),
):
    return await terminal.checkout(payload.payment_method)


@router.get("", response_model=List[Transaction])
async def list_transactions_endpoint(
    search: str = "",
    start: Optional[date] = None,
    end: Optional[date] = None,
    terminal: Terminal = Depends(get_terminal),
):
    return filter_transactions(terminal.state.transactions, search, start, end)


@router.get("/checkout-status", response_model=CheckoutStatus)
async def checkout_status_endpoint(terminal: Terminal = Depends(get_terminal)):
    return CheckoutStatus(processing=terminal.engine.processing, state=terminal.engine.current_state)


@router.get("/{transaction_id}", response_model=Transaction)
async def get_transaction_endpoint(
    transaction_id: UUID,
    terminal: Terminal = Depends(get_terminal),
):
    for transaction in terminal.state.transactions:
        if transaction.id == transaction_id:
            return transaction
    raise NotFoundError(f"Transaction {transaction_id} not found")

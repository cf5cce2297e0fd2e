# pos_edge/domain/checkout/schemas.py
import enum
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from pos_edge.domain.catalog.schemas import Variant


class TransactionLine(BaseModel):
    product_id: UUID
    name: Optional[str] = None
    category: Optional[str] = None
    quantity: int
    price_at_sale: int
    cost_at_sale: int = 0
    variants: List[Variant] = []

    class Config:
        from_attributes = True

    @property
    def line_total(self) -> int:
        return self.price_at_sale * self.quantity

    @property
    def profit(self) -> int:
        return (self.price_at_sale - self.cost_at_sale) * self.quantity


class Transaction(BaseModel):
    id: UUID
    branch_id: UUID
    date: datetime
    payment_method: str = "Cash"
    total: int
    profile_id: Optional[str] = None
    items: List[TransactionLine] = []

    class Config:
        from_attributes = True

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # sqlite hands timestamps back without their offset
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_rows(cls, header: Dict[str, Any], item_rows: Iterable[Dict[str, Any]]) -> "Transaction":
        items = sorted(item_rows, key=lambda row: row.get("line_number") or 0)
        return cls(
            **{k: header[k] for k in ("id", "branch_id", "date", "payment_method", "total", "profile_id")},
            items=[TransactionLine.model_validate(row) for row in items],
        )


class CheckoutState(str, enum.Enum):
    IDLE = "IDLE"
    HEADER_PENDING = "HEADER_PENDING"
    HEADER_COMMITTED = "HEADER_COMMITTED"
    ITEMS_PENDING = "ITEMS_PENDING"
    STOCK_PENDING = "STOCK_PENDING"
    DONE = "DONE"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    FAILED = "FAILED"
    ROLLED_BACK = "ROLLED_BACK"


class StepFailure(BaseModel):
    step: str
    message: str
    product_id: Optional[UUID] = None


class CheckoutResult(BaseModel):
    state: CheckoutState = CheckoutState.IDLE
    branch_id: Optional[UUID] = None
    transaction: Optional[Transaction] = None
    failures: List[StepFailure] = []

    @property
    def ok(self) -> bool:
        return self.state in (CheckoutState.DONE, CheckoutState.PARTIAL_FAILURE)


class CheckoutRequest(BaseModel):
    payment_method: Optional[str] = None


class CheckoutStatus(BaseModel):
    processing: bool
    state: CheckoutState

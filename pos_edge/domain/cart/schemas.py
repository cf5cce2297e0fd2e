from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, model_validator

from pos_edge.domain.catalog.schemas import Variant


class AddToCart(BaseModel):
    product_id: UUID
    # None means "no selection made yet"; [] is an explicit empty selection
    variants: Optional[List[str]] = None


class QuantityChange(BaseModel):
    delta: Optional[int] = None
    quantity: Optional[int] = None

    @model_validator(mode="after")
    def _one_of(self):
        if (self.delta is None) == (self.quantity is None):
            raise ValueError("Provide exactly one of delta or quantity")
        return self


class CartLineOut(BaseModel):
    key: str
    product_id: UUID
    name: str
    quantity: int
    unit_price: int
    line_total: int
    stock_ceiling: int
    variants: List[Variant]


class CartOut(BaseModel):
    items: List[CartLineOut]
    item_count: int
    subtotal: int
    total: int
    needs_variant_choice: bool = False
    variant_options: List[Variant] = []


def cart_out(cart, needs_variant_choice: bool = False, variant_options: Optional[List[Variant]] = None) -> CartOut:
    return CartOut(
        items=[
            CartLineOut(
                key=item.key,
                product_id=item.product.id,
                name=item.product.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
                stock_ceiling=item.stock_ceiling,
                variants=item.selected_variants,
            )
            for item in cart.items
        ],
        item_count=cart.item_count,
        subtotal=cart.subtotal,
        total=cart.total,
        needs_variant_choice=needs_variant_choice,
        variant_options=variant_options or [],
    )

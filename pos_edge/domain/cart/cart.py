# pos_edge/domain/cart/cart.py
"""
In-memory cart of one terminal.

Lines are keyed by product id plus the sorted names of the chosen variants,
so the same product sold with a different add-on combination is its own
line. Each line freezes the product snapshot, the variant selection and the
stock seen when it was created; quantities never go above that snapshot.
"""
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Union
from uuid import UUID

from pydantic import BaseModel

from pos_edge.core.errors import InvalidVariantError, NotFoundError
from pos_edge.domain.cart.pricing import cart_subtotal, cart_total, line_total, unit_price
from pos_edge.domain.catalog.schemas import Product, Variant

logger = logging.getLogger(__name__)


def make_line_key(product_id: UUID, variants: Iterable[Variant] = ()) -> str:
    names = sorted(v.name for v in variants)
    return f"{product_id}|{','.join(names)}"


class CartItem(BaseModel):
    product: Product
    quantity: int
    selected_variants: List[Variant] = []
    stock_ceiling: int

    @property
    def key(self) -> str:
        return make_line_key(self.product.id, self.selected_variants)

    @property
    def unit_price(self) -> int:
        return unit_price(self.product, self.selected_variants)

    @property
    def line_total(self) -> int:
        return line_total(self)


class Cart:
    def __init__(self):
        # dict keeps insertion order, which is the display order
        self._lines: Dict[str, CartItem] = {}

    @property
    def items(self) -> List[CartItem]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def __bool__(self) -> bool:
        return bool(self._lines)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._lines.values())

    @property
    def subtotal(self) -> int:
        return cart_subtotal(self._lines.values())

    @property
    def total(self) -> int:
        return cart_total(self._lines.values())

    def get(self, key: str) -> CartItem:
        try:
            return self._lines[key]
        except KeyError:
            raise NotFoundError(f"Cart line {key} not found") from None

    def begin_add(self, product: Product) -> bool:
        """Start adding one unit of ``product``.

        Returns True when the product has variants and the caller must collect
        a selection and finish with ``confirm_add``. Out-of-stock products are
        ignored and return False.
        """
        if product.stock <= 0:
            logger.debug("Ignoring add of out-of-stock product %s", product.id)
            return False
        if product.variants:
            return True
        self.confirm_add(product, ())
        return False

    def add(self, product: Product) -> bool:
        return self.begin_add(product)

    def confirm_add(
        self,
        product: Product,
        chosen: Sequence[Union[Variant, str]] = (),
    ) -> Optional[CartItem]:
        """Add one unit of ``product`` with the chosen variants.

        Returns the affected line, or None when nothing changed because the
        product is out of stock or the line is already at its stock cap.
        """
        if product.stock <= 0:
            return None

        variants = self._resolve_variants(product, chosen)
        key = make_line_key(product.id, variants)

        line = self._lines.get(key)
        if line is None:
            line = CartItem(
                product=product,
                quantity=1,
                selected_variants=variants,
                stock_ceiling=product.stock,
            )
            self._lines[key] = line
            return line

        if line.quantity >= min(line.stock_ceiling, product.stock):
            logger.debug("Line %s already at stock cap %s", key, line.quantity)
            return None
        line.quantity += 1
        return line

    def change_quantity(self, key: str, delta: int) -> Optional[CartItem]:
        line = self.get(key)
        return self._set(line, line.quantity + delta)

    def set_quantity(self, key: str, value: int) -> Optional[CartItem]:
        return self._set(self.get(key), value)

    def remove(self, key: str) -> None:
        self._lines.pop(key, None)

    def clear(self) -> None:
        self._lines.clear()

    def remove_sold(self, sold: Iterable[CartItem]) -> None:
        """Take sold lines out of the cart.

        Only the sold quantity is removed from each matching line, so lines
        added or raised after ``sold`` was copied stay in the cart.
        """
        for item in sold:
            line = self._lines.get(item.key)
            if line is None:
                continue
            remaining = line.quantity - item.quantity
            if remaining <= 0:
                del self._lines[item.key]
            else:
                line.quantity = remaining

    def _set(self, line: CartItem, quantity: int) -> Optional[CartItem]:
        # the ceiling is the stock seen when the line was created, not live stock
        quantity = min(max(0, quantity), line.stock_ceiling)
        if quantity == 0:
            del self._lines[line.key]
            return None
        line.quantity = quantity
        return line

    @staticmethod
    def _resolve_variants(product: Product, chosen: Sequence[Union[Variant, str]]) -> List[Variant]:
        by_name = {v.name: v for v in product.variants}
        names = set()
        for choice in chosen:
            name = choice.name if isinstance(choice, Variant) else choice
            if name not in by_name:
                raise InvalidVariantError(f"{product.name} has no variant {name!r}")
            names.add(name)
        # keep the product's own ordering of its variants
        return [v for v in product.variants if v.name in names]

from typing import Iterable, Sequence

from pos_edge.domain.catalog.schemas import Product, Variant


def unit_price(product: Product, variants: Sequence[Variant] = ()) -> int:
    # variant prices are add-ons on top of the product price
    return product.price + sum(v.price for v in variants)


def line_total(item) -> int:
    return unit_price(item.product, item.selected_variants) * item.quantity


def cart_subtotal(items: Iterable) -> int:
    return sum(line_total(item) for item in items)


def cart_total(items: Iterable) -> int:
    # no tax or discount layer yet
    return cart_subtotal(items)

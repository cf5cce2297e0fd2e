# pos_edge/api/v1/routes_cart.py
from fastapi import APIRouter, Depends

from pos_edge.api.v1.deps import get_terminal
from pos_edge.domain.cart.schemas import AddToCart, CartOut, QuantityChange, cart_out
from pos_edge.domain.terminal import Terminal

router = APIRouter(prefix="/api/v1/cart", tags=["cart"])


@router.get("", response_model=CartOut)
async def get_cart(terminal: Terminal = Depends(get_terminal)):
    return cart_out(terminal.cart)


@router.post("/items", response_model=CartOut)
async def add_to_cart_endpoint(
    payload: AddToCart,
    terminal: Terminal = Depends(get_terminal),
):
    product = terminal.inventory.get_product(payload.product_id)
    if payload.variants is None:
        needs_choice = terminal.cart.begin_add(product)
        return cart_out(terminal.cart, needs_choice, product.variants if needs_choice else None)

    terminal.cart.confirm_add(product, payload.variants)
    return cart_out(terminal.cart)


@router.patch("/items/{key}", response_model=CartOut)
async def change_quantity_endpoint(
    key: str,
    payload: QuantityChange,
    terminal: Terminal = Depends(get_terminal),
):
    if payload.delta is not None:
        terminal.cart.change_quantity(key, payload.delta)
    else:
        terminal.cart.set_quantity(key, payload.quantity)
    return cart_out(terminal.cart)


@router.delete("/items/{key}", response_model=CartOut)
async def remove_line_endpoint(key: str, terminal: Terminal = Depends(get_terminal)):
    terminal.cart.remove(key)
    return cart_out(terminal.cart)


@router.delete("", response_model=CartOut)
async def clear_cart_endpoint(terminal: Terminal = Depends(get_terminal)):
    terminal.cart.clear()
    return cart_out(terminal.cart)

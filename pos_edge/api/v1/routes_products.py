from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from pos_edge.api.v1.deps import get_terminal
from pos_edge.domain.catalog.schemas import Category, Product, ProductCreate, ProductUpdate
from pos_edge.domain.terminal import Terminal

router = APIRouter(prefix="/api/v1/products", tags=["products"])


@router.get("", response_model=List[Product])
async def list_products_endpoint(
    search: str = "",
    category: Optional[Category] = None,
    restock_only: bool = False,
    terminal: Terminal = Depends(get_terminal),
):
    return terminal.inventory.search(search, category, restock_only)


@router.get("/low-stock", response_model=List[Product])
async def low_stock_endpoint(terminal: Terminal = Depends(get_terminal)):
    return terminal.inventory.low_stock()


@router.post("", response_model=Product, status_code=201)
async def create_product_endpoint(
    payload: ProductCreate,
    terminal: Terminal = Depends(get_terminal),
):
    return await terminal.inventory.create_product(payload)


@router.patch("/{product_id}", response_model=Product)
async def update_product_endpoint(
    product_id: UUID,
    payload: ProductUpdate,
    terminal: Terminal = Depends(get_terminal),
):
    return await terminal.inventory.update_product(product_id, payload)


@router.delete("/{product_id}", status_code=204)
async def delete_product_endpoint(product_id: UUID, terminal: Terminal = Depends(get_terminal)):
    await terminal.inventory.delete_product(product_id)

# pos_edge/domain/inventory/service.py
import logging
from typing import List, Optional
from uuid import UUID

from pos_edge.backend.data_service import DataService
from pos_edge.core.errors import NoActiveBranchError, NotFoundError
from pos_edge.domain.catalog.schemas import Category, Product, ProductCreate, ProductUpdate
from pos_edge.domain.state.store import BranchState

logger = logging.getLogger(__name__)


def search_products(
    products: List[Product],
    term: str = "",
    category: Optional[Category] = None,
    restock_only: bool = False,
) -> List[Product]:
    """Case-insensitive match on name or SKU, plus category and low-stock filters."""
    needle = term.strip().lower()
    matched = []
    for product in products:
        if needle and needle not in product.name.lower() and needle not in (product.sku or "").lower():
            continue
        if category is not None and product.category != category:
            continue
        if restock_only and not product.is_low_stock:
            continue
        matched.append(product)
    return matched


class InventoryService:
    """Product CRUD for the active branch.

    Writes go to the backend first and are then applied to the local list
    right away; the realtime echo of the same write merges by id.
    """

    def __init__(self, data: DataService, state: BranchState):
        self.data = data
        self.state = state

    def _branch(self) -> UUID:
        if self.state.branch_id is None:
            raise NoActiveBranchError("No active branch selected")
        return self.state.branch_id

    def search(self, term: str = "", category: Optional[Category] = None, restock_only: bool = False) -> List[Product]:
        return search_products(self.state.products, term, category, restock_only)

    def low_stock(self) -> List[Product]:
        return self.state.low_stock()

    def get_product(self, product_id: UUID) -> Product:
        product = self.state.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    async def create_product(self, payload: ProductCreate) -> Product:
        branch_id = self._branch()
        row = {"branch_id": branch_id, **payload.model_dump(mode="json")}
        created = await self.data.insert("products", [row])
        product = Product.model_validate(created[0])
        self.state.apply_product(product)
        logger.info("Product %s (%s) added to branch %s", product.name, product.id, branch_id)
        return product

    async def update_product(self, product_id: UUID, payload: ProductUpdate) -> Product:
        branch_id = self._branch()
        values = payload.model_dump(mode="json", exclude_unset=True)
        if not values:
            return self.get_product(product_id)
        row = await self.data.update("products", product_id, values, filters={"branch_id": branch_id})
        if row is None:
            raise NotFoundError(f"Product {product_id} not found")
        product = Product.model_validate(row)
        self.state.apply_product(product)
        return product

    async def delete_product(self, product_id: UUID) -> None:
        branch_id = self._branch()
        if await self.data.delete("products", product_id, filters={"branch_id": branch_id}) is None:
            raise NotFoundError(f"Product {product_id} not found")
        self.state.drop_product(product_id)
        logger.info("Product %s removed from branch %s", product_id, branch_id)

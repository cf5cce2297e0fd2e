import pytest

from conftest import EXTRA_SHOT, make_product, product_payload, run
from pos_edge.core.errors import NotFoundError
from pos_edge.domain.catalog.schemas import Category, ProductCreate, ProductUpdate
from pos_edge.domain.inventory.service import search_products


def test_search_by_name_sku_category_and_restock():
    products = [
        make_product(name="Beras Premium 5kg", sku="BRS-01", category=Category.STAPLE, stock=25, min_stock=10),
        make_product(name="Buku Tulis", sku="ATK-7", category=Category.STATIONERY, stock=3, min_stock=5),
        make_product(name="Air Mineral", sku=None, category=Category.BEVERAGE, stock=5, min_stock=5),
    ]

    assert [p.name for p in search_products(products, "beras")] == ["Beras Premium 5kg"]
    assert [p.name for p in search_products(products, "atk")] == ["Buku Tulis"]
    assert [p.name for p in search_products(products, category=Category.BEVERAGE)] == ["Air Mineral"]
    assert [p.name for p in search_products(products, restock_only=True)] == ["Buku Tulis", "Air Mineral"]


def test_create_defaults():
    payload = ProductCreate()
    assert (payload.name, payload.min_stock, payload.category) == ("Produk Baru", 5, Category.FOOD)


def test_product_crud_is_scoped_to_active_branch(open_terminal):
    async def scenario():
        async with open_terminal() as terminal:
            created = await terminal.inventory.create_product(product_payload(sku="KS-1", variants=[EXTRA_SHOT]))
            updated = await terminal.inventory.update_product(created.id, ProductUpdate(price=1100, stock=4))
            local = terminal.inventory.get_product(created.id)
            rows = await terminal.data.select("products", {"id": created.id})

            await terminal.inventory.delete_product(created.id)
            with pytest.raises(NotFoundError):
                await terminal.inventory.update_product(created.id, ProductUpdate(price=1))
            with pytest.raises(NotFoundError):
                terminal.inventory.get_product(created.id)
            await terminal.data.feed.drain()
            return created, updated, local, rows, terminal.state.products

    created, updated, local, rows, remaining = run(scenario())
    assert created.variants == [EXTRA_SHOT]
    assert (updated.price, updated.stock, updated.name) == (1100, 4, "Kopi Susu")
    assert local == updated
    assert rows[0]["variants"] == [{"name": "extra", "price": 500}]
    assert remaining == []


def test_low_stock_list(open_terminal):
    async def scenario():
        async with open_terminal() as terminal:
            await terminal.inventory.create_product(product_payload(name="Gula", stock=2, min_stock=5))
            await terminal.inventory.create_product(product_payload(name="Teh", stock=20, min_stock=5))
            return [p.name for p in terminal.inventory.low_stock()]

    assert run(scenario()) == ["Gula"]

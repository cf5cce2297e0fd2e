import uuid
from datetime import datetime, timezone

from conftest import make_product, product_payload, run
from pos_edge.domain.accounts.schemas import AccountCreate
from pos_edge.domain.checkout.schemas import Transaction
from pos_edge.domain.state.store import BranchState, remove_by_id, upsert_by_id


def test_upsert_replaces_or_appends():
    first, second = make_product(name="Teh"), make_product(name="Gula")
    products = [first]

    upsert_by_id(products, second)
    upsert_by_id(products, first.model_copy(update={"stock": 1}))

    assert [p.name for p in products] == ["Teh", "Gula"]
    assert products[0].stock == 1

    remove_by_id(products, first.id)
    assert products == [second]


def test_transactions_are_prepended_once():
    state = BranchState()
    branch = uuid.uuid4()
    state.reset(branch)
    older = Transaction(id=uuid.uuid4(), branch_id=branch, date=datetime(2026, 1, 1, tzinfo=timezone.utc), total=1)
    newer = Transaction(id=uuid.uuid4(), branch_id=branch, date=datetime(2026, 1, 2, tzinfo=timezone.utc), total=2)

    state.apply_transaction(older)
    state.apply_transaction(newer)
    state.apply_transaction(newer)

    assert [t.id for t in state.transactions] == [newer.id, older.id]


def test_records_of_other_branches_are_ignored():
    state = BranchState()
    state.reset(uuid.uuid4())
    state.apply_product(make_product())
    assert state.products == []


def test_tokens_go_stale_on_reset_and_close():
    state = BranchState()
    token = state.reset(uuid.uuid4())
    assert state.is_current(token)

    assert not state.is_current(token - 1)
    newer = state.reset(uuid.uuid4())
    assert not state.is_current(token)

    state.close()
    assert not state.is_current(newer)


def test_realtime_updates_reach_local_products(open_terminal):
    async def scenario():
        async with open_terminal() as terminal:
            product = await terminal.inventory.create_product(product_payload(stock=8))
            # a write from another terminal, straight to the backend
            await terminal.data.update("products", product.id, {"stock": 2, "price": 1200})
            await terminal.data.feed.drain()
            updated = terminal.state.get_product(product.id)
            await terminal.data.delete("products", product.id)
            await terminal.data.feed.drain()
            return updated, terminal.state.products

    updated, remaining = run(scenario())
    assert (updated.stock, updated.price) == (2, 1200)
    assert updated.is_low_stock
    assert remaining == []


def test_switching_branch_loads_its_data_and_drops_old_events(open_terminal):
    async def scenario():
        async with open_terminal() as terminal:
            branch_a = terminal.active_branch_id
            product_a = await terminal.inventory.create_product(product_payload(name="Beras"))
            branch_b = await terminal.accounts.create_account(AccountCreate(name="Cabang Depok"))
            await terminal.data.insert("products", [{"branch_id": branch_b.id, "name": "Pensil", "price": 2000, "stock": 30}])

            terminal.cart.add(product_a)
            await terminal.switch_branch(branch_b.id)
            cart_after_switch = terminal.cart.items

            # branch A changes no longer reach this terminal
            await terminal.data.update("products", product_a.id, {"stock": 0})
            await terminal.data.feed.drain()
            names = [p.name for p in terminal.state.products]

            await terminal.switch_branch(branch_a)
            back = terminal.state.get_product(product_a.id)
            return cart_after_switch, names, back

    cart_after_switch, names, back = run(scenario())
    assert cart_after_switch == []
    assert names == ["Pensil"]
    assert back.stock == 0


def test_history_is_loaded_newest_first_with_items(open_terminal):
    async def scenario():
        async with open_terminal() as terminal:
            product = await terminal.inventory.create_product(product_payload(stock=10))
            for _ in range(3):
                terminal.cart.add(product)
                await terminal.checkout()
            await terminal.data.feed.drain()
            branch = terminal.active_branch_id
            await terminal.switch_branch(branch)
            return terminal.state.transactions

    history = run(scenario())
    assert len(history) == 3
    assert history == sorted(history, key=lambda t: t.date, reverse=True)
    assert all(len(t.items) == 1 and t.items[0].name == "Kopi Susu" for t in history)

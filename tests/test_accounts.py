import uuid

import pytest

from conftest import run
from pos_edge.backend.auth import InMemoryAuthService, Role
from pos_edge.core.errors import BusinessError, NotFoundError
from pos_edge.domain.accounts.schemas import AccountCreate, AccountUpdate, CooperativeAccount
from pos_edge.domain.accounts.service import BranchMemory, resolve_active_branch
from pos_edge.domain.terminal import Terminal


def _account(name):
    return CooperativeAccount(id=uuid.uuid4(), name=name)


def test_resolution_prefers_claim_then_saved_then_first():
    pusat, depok, bogor = _account("Pusat"), _account("Depok"), _account("Bogor")
    accounts = [pusat, depok, bogor]

    assert resolve_active_branch(accounts, bogor.id, depok.id) is bogor
    assert resolve_active_branch(accounts, uuid.uuid4(), depok.id) is depok
    assert resolve_active_branch(accounts, None, uuid.uuid4()) is pusat
    assert resolve_active_branch([], None, None) is None


def test_branch_memory_round_trip(tmp_path):
    memory = BranchMemory(str(tmp_path / "state"))
    assert memory.load() is None

    branch_id = uuid.uuid4()
    memory.save(branch_id)
    assert BranchMemory(str(tmp_path / "state")).load() == branch_id

    memory.path.write_text("garbage", encoding="utf-8")
    assert memory.load() is None


def test_first_start_creates_default_branch(open_terminal):
    async def scenario():
        async with open_terminal() as terminal:
            return terminal.branches, terminal.active_branch

    branches, active = run(scenario())
    assert [b.name for b in branches] == ["Toko Amanah"]
    assert (active.address, active.phone) == ("Pusat", "-")


def test_start_uses_session_branch_claim(open_backend, settings):
    async def scenario():
        async with open_backend() as data:
            rows = await data.insert("accounts", [{"name": "Pusat"}, {"name": "Depok"}])
            auth = InMemoryAuthService()
            await auth.sign_in("kasir-02", Role.CASHIER, branch_id=rows[1]["id"])
            terminal = Terminal(data, auth, settings, BranchMemory(settings.STATE_DIR))
            await terminal.start()
            active = terminal.active_branch.name
            saved = terminal.memory.load()
            await terminal.close()
            return active, saved, rows[1]["id"]

    active, saved, depok_id = run(scenario())
    assert active == "Depok"
    assert saved == depok_id


def test_session_change_switches_branch(open_terminal):
    async def scenario():
        auth = InMemoryAuthService()
        async with open_terminal(auth=auth) as terminal:
            depok = await terminal.accounts.create_account(AccountCreate(name="Depok"))
            await auth.sign_in("kasir-03", Role.CASHIER, branch_id=depok.id)
            return terminal.active_branch_id, depok.id

    active, depok_id = run(scenario())
    assert active == depok_id


def test_account_crud(open_terminal):
    async def scenario():
        async with open_terminal() as terminal:
            depok = await terminal.accounts.create_account(AccountCreate(name="Depok", phone="021-7654321"))
            renamed = await terminal.accounts.update_account(depok.id, AccountUpdate(name="Cabang Depok"))

            with pytest.raises(BusinessError):
                await terminal.accounts.delete_account(terminal.active_branch_id, terminal.active_branch_id)

            await terminal.accounts.delete_account(depok.id, terminal.active_branch_id)
            with pytest.raises(NotFoundError):
                await terminal.accounts.get_account(depok.id)
            return renamed, await terminal.accounts.list_accounts()

    renamed, remaining = run(scenario())
    assert (renamed.name, renamed.phone) == ("Cabang Depok", "021-7654321")
    assert [a.name for a in remaining] == ["Toko Amanah"]

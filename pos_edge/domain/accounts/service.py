# pos_edge/domain/accounts/service.py
import logging
from pathlib import Path
from typing import List, Optional, Sequence
from uuid import UUID

from pos_edge.backend.data_service import DataService
from pos_edge.core.errors import BusinessError, NotFoundError
from pos_edge.domain.accounts.schemas import AccountCreate, AccountUpdate, CooperativeAccount

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT = AccountCreate(name="Toko Amanah", address="Pusat", phone="-")


class BranchMemory:
    """Remembers the last active branch of this terminal across restarts."""

    FILENAME = "active_branch"

    def __init__(self, state_dir: Optional[str]):
        self.path = Path(state_dir) / self.FILENAME if state_dir else None

    def load(self) -> Optional[UUID]:
        if self.path is None or not self.path.exists():
            return None
        text = self.path.read_text(encoding="utf-8").strip()
        try:
            return UUID(text)
        except ValueError:
            logger.warning("Ignoring unreadable saved branch id %r", text)
            return None

    def save(self, branch_id: UUID) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(branch_id), encoding="utf-8")


def resolve_active_branch(
    accounts: Sequence[CooperativeAccount],
    claimed_branch_id: Optional[UUID] = None,
    saved_branch_id: Optional[UUID] = None,
) -> Optional[CooperativeAccount]:
    """Pick the branch to open: session claim, then last saved, then first."""
    by_id = {a.id: a for a in accounts}
    for candidate in (claimed_branch_id, saved_branch_id):
        if candidate is not None and candidate in by_id:
            return by_id[candidate]
    return accounts[0] if accounts else None


class AccountService:
    def __init__(self, data: DataService):
        self.data = data

    async def list_accounts(self) -> List[CooperativeAccount]:
        rows = await self.data.select("accounts", order_by="created_at")
        return [CooperativeAccount.model_validate(row) for row in rows]

    async def get_account(self, account_id: UUID) -> CooperativeAccount:
        rows = await self.data.select("accounts", {"id": account_id})
        if not rows:
            raise NotFoundError(f"Branch {account_id} not found")
        return CooperativeAccount.model_validate(rows[0])

    async def ensure_default(self) -> List[CooperativeAccount]:
        accounts = await self.list_accounts()
        if accounts:
            return accounts
        # first run
        logger.info("No branches found, creating %s", DEFAULT_ACCOUNT.name)
        return [await self.create_account(DEFAULT_ACCOUNT)]

    async def create_account(self, payload: AccountCreate) -> CooperativeAccount:
        rows = await self.data.insert("accounts", [payload.model_dump()])
        return CooperativeAccount.model_validate(rows[0])

    async def update_account(self, account_id: UUID, payload: AccountUpdate) -> CooperativeAccount:
        values = payload.model_dump(exclude_none=True)
        if not values:
            return await self.get_account(account_id)
        row = await self.data.update("accounts", account_id, values)
        if row is None:
            raise NotFoundError(f"Branch {account_id} not found")
        return CooperativeAccount.model_validate(row)

    async def delete_account(self, account_id: UUID, active_branch_id: Optional[UUID]) -> None:
        if account_id == active_branch_id:
            raise BusinessError("The active branch cannot be deleted")
        if await self.data.select("products", {"branch_id": account_id}):
            raise BusinessError("Branch still has products")
        if await self.data.select("transactions", {"branch_id": account_id}):
            raise BusinessError("Branch still has transactions")
        if await self.data.delete("accounts", account_id) is None:
            raise NotFoundError(f"Branch {account_id} not found")

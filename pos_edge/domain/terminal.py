# pos_edge/domain/terminal.py
"""
Application context of one point-of-sale terminal.

The terminal holds the collaborators (data service, auth) and the mutable
session state (active branch, local lists, cart) explicitly, and passes the
active branch id into the checkout engine when a checkout starts instead of
letting the engine read it later.
"""
import logging
from typing import List, Optional
from uuid import UUID

from pos_edge.backend.auth import AuthService, AuthSession, AuthSubscription
from pos_edge.backend.data_service import DataService
from pos_edge.core.config import Settings
from pos_edge.core.errors import NoActiveBranchError
from pos_edge.domain.accounts.schemas import CooperativeAccount
from pos_edge.domain.accounts.service import AccountService, BranchMemory, resolve_active_branch
from pos_edge.domain.cart.cart import Cart
from pos_edge.domain.checkout.schemas import CheckoutResult
from pos_edge.domain.checkout.service import CheckoutEngine
from pos_edge.domain.inventory.service import InventoryService
from pos_edge.domain.state.store import BranchState
from pos_edge.domain.state.sync import RealtimeSync

logger = logging.getLogger(__name__)


class Terminal:
    def __init__(
        self,
        data: DataService,
        auth: AuthService,
        settings: Settings,
        memory: Optional[BranchMemory] = None,
    ):
        self.data = data
        self.auth = auth
        self.settings = settings
        self.memory = memory or BranchMemory(None)

        self.state = BranchState()
        self.cart = Cart()
        self.accounts = AccountService(data)
        self.inventory = InventoryService(data, self.state)
        self.sync = RealtimeSync(data, self.state)
        self.engine = CheckoutEngine(data, self.cart, self.state, settings)

        self.branches: List[CooperativeAccount] = []
        self._auth_subscription: Optional[AuthSubscription] = None

    @property
    def active_branch_id(self) -> Optional[UUID]:
        return self.state.branch_id

    @property
    def active_branch(self) -> Optional[CooperativeAccount]:
        return next((b for b in self.branches if b.id == self.state.branch_id), None)

    async def start(self) -> None:
        self.branches = await self.accounts.ensure_default()
        session = await self.auth.get_session()
        branch = resolve_active_branch(self.branches, session.branch_id, self.memory.load())
        if branch is not None:
            await self.switch_branch(branch.id)
        self._auth_subscription = self.auth.on_change(self._on_session_change)

    async def refresh_branches(self) -> List[CooperativeAccount]:
        self.branches = await self.accounts.list_accounts()
        return self.branches

    async def switch_branch(self, branch_id: UUID) -> CooperativeAccount:
        branch = next((b for b in self.branches if b.id == branch_id), None)
        if branch is None:
            # may have been created by another terminal
            branch = await self.accounts.get_account(branch_id)
            await self.refresh_branches()

        token = self.state.reset(branch.id)
        # cart lines belong to the old branch's catalog
        self.cart.clear()
        self.memory.save(branch.id)
        # subscribe before loading so nothing between the two is missed
        self.sync.start(branch.id, token)
        await self.sync.load(branch.id, token)
        logger.info("Active branch is now %s (%s)", branch.name, branch.id)
        return branch

    async def checkout(self, payment_method: Optional[str] = None) -> CheckoutResult:
        # capture before the first await, a branch switch may follow
        branch_id = self.state.branch_id
        token = self.state.token()
        if branch_id is None:
            raise NoActiveBranchError("No active branch selected")
        session = await self.auth.get_session()
        return await self.engine.checkout(
            branch_id,
            payment_method=payment_method,
            profile_id=session.user_id,
            token=token,
        )

    async def _on_session_change(self, session: AuthSession) -> None:
        if session.branch_id is None or session.branch_id == self.state.branch_id:
            return
        if any(b.id == session.branch_id for b in await self.refresh_branches()):
            logger.info("Switching to branch %s from session claim", session.branch_id)
            await self.switch_branch(session.branch_id)

    async def close(self) -> None:
        self.sync.stop()
        self.state.close()
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None

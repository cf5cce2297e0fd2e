from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from pos_edge.api.v1.deps import get_terminal, require_super_admin
from pos_edge.core.errors import NoActiveBranchError
from pos_edge.domain.accounts.schemas import AccountCreate, AccountUpdate, ActiveBranch, CooperativeAccount
from pos_edge.domain.terminal import Terminal

router = APIRouter(prefix="/api/v1/branches", tags=["branches"])


@router.get("", response_model=List[CooperativeAccount])
async def list_branches_endpoint(terminal: Terminal = Depends(get_terminal)):
    return await terminal.refresh_branches()


@router.get("/active", response_model=CooperativeAccount)
async def active_branch_endpoint(terminal: Terminal = Depends(get_terminal)):
    if terminal.active_branch_id is None:
        raise NoActiveBranchError("No active branch selected")
    return await terminal.accounts.get_account(terminal.active_branch_id)


@router.put("/active", dependencies=[Depends(require_super_admin)], response_model=CooperativeAccount)
async def switch_branch_endpoint(
    payload: ActiveBranch,
    terminal: Terminal = Depends(get_terminal),
):
    return await terminal.switch_branch(payload.branch_id)


@router.post("", dependencies=[Depends(require_super_admin)], response_model=CooperativeAccount, status_code=201)
async def create_branch_endpoint(
    payload: AccountCreate,
    terminal: Terminal = Depends(get_terminal),
):
    account = await terminal.accounts.create_account(payload)
    await terminal.refresh_branches()
    return account


@router.patch("/{branch_id}", dependencies=[Depends(require_super_admin)], response_model=CooperativeAccount)
async def update_branch_endpoint(
    branch_id: UUID,
    payload: AccountUpdate,
    terminal: Terminal = Depends(get_terminal),
):
    account = await terminal.accounts.update_account(branch_id, payload)
    await terminal.refresh_branches()
    return account


@router.delete("/{branch_id}", dependencies=[Depends(require_super_admin)], status_code=204)
async def delete_branch_endpoint(branch_id: UUID, terminal: Terminal = Depends(get_terminal)):
    await terminal.accounts.delete_account(branch_id, terminal.active_branch_id)
    await terminal.refresh_branches()

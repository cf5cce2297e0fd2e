from fastapi import Depends, HTTPException, Request

from pos_edge.backend.auth import Role
from pos_edge.domain.terminal import Terminal


def get_terminal(request: Request) -> Terminal:
    return request.app.state.terminal


async def require_super_admin(terminal: Terminal = Depends(get_terminal)) -> None:
    # cashiers only get the sale screens
    session = await terminal.auth.get_session()
    if session.role is not Role.SUPER_ADMIN:
        raise HTTPException(status_code=403, detail="Super admin role required")

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CooperativeAccount(BaseModel):
    id: UUID
    name: str
    address: str = ""
    phone: str = ""
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccountCreate(BaseModel):
    name: str
    address: str = ""
    phone: str = ""


class AccountUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class ActiveBranch(BaseModel):
    branch_id: UUID

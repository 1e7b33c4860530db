from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class WorkspaceRole(str, Enum):
    owner = "owner"
    admin = "admin"
    member = "member"


class WorkspaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)


class WorkspaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    icon: Optional[str] = None


class MemberCreate(BaseModel):
    email: str
    role: WorkspaceRole = WorkspaceRole.member


class MemberUpdate(BaseModel):
    role: WorkspaceRole

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from momentum.database.session import get_db
from momentum.models import User, WorkspaceMember
from momentum.auth.dependencies import (
    get_current_user,
    require_workspace_member,
    require_workspace_manager,
    require_workspace_owner,
)
from momentum.constants import Roles, SuccessMessages
from momentum.schemas import WorkspaceCreate, WorkspaceUpdate, MemberCreate, MemberUpdate
from momentum.utils.utils import workspace_to_dict, member_to_dict
from momentum.utils import workspace_service

router = APIRouter(prefix="/workspaces", tags=["Workspaces"])


@router.get("")
def list_workspaces(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Workspaces the caller belongs to, with the caller's role in each.
    A user without any workspace gets a default one first.
    """
    workspace_service.ensure_default_workspace(db, user)
    return [workspace_to_dict(w, role) for w, role in workspace_service.list_workspaces(db, user)]


@router.post("", status_code=201)
def create_workspace(
    request: WorkspaceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    workspace = workspace_service.create_workspace(db, user, request)
    return workspace_to_dict(workspace, role=Roles.OWNER)


@router.get("/{workspace_id}")
def get_workspace(membership: WorkspaceMember = Depends(require_workspace_member)):
    return workspace_to_dict(membership.workspace, role=membership.role)


@router.patch("/{workspace_id}")
def update_workspace(
    request: WorkspaceUpdate,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_manager)
):
    """Rename or change the icon. Owners and admins only."""
    workspace = workspace_service.update_workspace(db, membership.workspace, request)
    return workspace_to_dict(workspace, role=membership.role)


@router.delete("/{workspace_id}")
def delete_workspace(
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_owner)
):
    workspace_service.delete_workspace(db, membership.workspace)
    return {"message": SuccessMessages.WORKSPACE_DELETED}


# ---------------- MEMBERS ---------------- #

@router.get("/{workspace_id}/members")
def list_members(
    workspace_id: int,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_member)
):
    return [member_to_dict(m) for m in workspace_service.list_members(db, workspace_id)]


@router.post("/{workspace_id}/members", status_code=201)
def add_member(
    request: MemberCreate,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_manager)
):
    member = workspace_service.add_member(db, membership, request)
    return member_to_dict(member)


@router.patch("/{workspace_id}/members/{user_id}")
def change_member_role(
    user_id: int,
    request: MemberUpdate,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_manager)
):
    member = workspace_service.change_member_role(db, membership, user_id, request.role.value)
    return member_to_dict(member)


@router.delete("/{workspace_id}/members/{user_id}")
def remove_member(
    user_id: int,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_member)
):
    """
    Managers may remove anyone; any member may leave.
    """
    workspace_service.remove_member(db, membership, user_id)
    return {"message": SuccessMessages.MEMBER_REMOVED}

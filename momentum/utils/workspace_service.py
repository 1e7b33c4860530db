import logging
import re
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from momentum.config.settings import settings
from momentum.constants import (
    DEFAULT_LABELS,
    DEFAULT_PROJECT_DESCRIPTION,
    DEFAULT_PROJECT_KEY,
    DEFAULT_PROJECT_NAME,
    ErrorMessages,
    Roles,
)
from momentum.models import Issue, Label, Project, User, Workspace, WorkspaceMember
from momentum.schemas import MemberCreate, WorkspaceCreate, WorkspaceUpdate
from momentum.auth.permissions import can_manage_workspace, get_user_workspace_ids

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:100] or "workspace"


def _unique_slug(db: Session, base: str) -> str:
    slug = base
    suffix = 2
    while db.query(Workspace.id).filter(Workspace.slug == slug).first():
        tail = f"-{suffix}"
        slug = f"{base[:100 - len(tail)]}{tail}"
        suffix += 1
    return slug


def create_workspace(db: Session, user: User, data: WorkspaceCreate) -> Workspace:
    """
    Creates a workspace owned by `user`, seeded with default labels and a
    starter project, in one transaction.

    Args:
        db: Database session
        user: The creating user, recorded as owner
        data: Name and optional slug

    Returns:
        Workspace: The new workspace

    Raises:
        HTTPException: If an explicit slug is already taken
    """
    if data.slug:
        slug = slugify(data.slug)
        if db.query(Workspace.id).filter(Workspace.slug == slug).first():
            raise HTTPException(status_code=400, detail=f"slug: {ErrorMessages.SLUG_TAKEN}")
    else:
        slug = _unique_slug(db, slugify(data.name))

    workspace = Workspace(name=data.name, slug=slug, owner_id=user.id)
    workspace.members.append(WorkspaceMember(user_id=user.id, role=Roles.OWNER))
    for name, color in DEFAULT_LABELS:
        workspace.labels.append(Label(name=name, color=color))
    workspace.projects.append(Project(
        name=DEFAULT_PROJECT_NAME,
        key=DEFAULT_PROJECT_KEY,
        color=settings.DEFAULT_PROJECT_COLOR,
        description=DEFAULT_PROJECT_DESCRIPTION,
        issue_counter=0,
    ))

    db.add(workspace)
    db.commit()
    db.refresh(workspace)
    logger.info(f"Workspace {workspace.id} ({workspace.slug}) created by user {user.id}")
    return workspace


def default_workspace_name(user: User) -> str:
    return f"{user.name[:200]}'s Workspace"


def ensure_default_workspace(db: Session, user: User) -> Optional[Workspace]:
    """
    Gives a user with no workspace their first one.

    Returns:
        Workspace: The created workspace, or None if the user already had one
    """
    if get_user_workspace_ids(db, user.id):
        return None
    return create_workspace(db, user, WorkspaceCreate(name=default_workspace_name(user)))


def list_workspaces(db: Session, user: User) -> list:
    """
    Returns ``(workspace, role)`` pairs for every workspace the user belongs to.
    """
    memberships = db.query(WorkspaceMember)\
        .options(joinedload(WorkspaceMember.workspace))\
        .filter(WorkspaceMember.user_id == user.id)\
        .order_by(WorkspaceMember.joined_at, WorkspaceMember.id)\
        .all()
    return [(m.workspace, m.role) for m in memberships]


def update_workspace(db: Session, workspace: Workspace, data: WorkspaceUpdate) -> Workspace:
    updates = data.model_dump(exclude_unset=True)
    if updates.get("name") is None:
        updates.pop("name", None)
    for field, value in updates.items():
        setattr(workspace, field, value)
    db.commit()
    db.refresh(workspace)
    return workspace


def delete_workspace(db: Session, workspace: Workspace):
    db.delete(workspace)
    db.commit()
    logger.info(f"Workspace {workspace.id} deleted")


# ---------------- MEMBERS ---------------- #

def list_members(db: Session, workspace_id: int) -> list:
    return db.query(WorkspaceMember)\
        .options(joinedload(WorkspaceMember.user))\
        .filter(WorkspaceMember.workspace_id == workspace_id)\
        .order_by(WorkspaceMember.joined_at, WorkspaceMember.id)\
        .all()


def _get_member(db: Session, workspace_id: int, user_id: int) -> WorkspaceMember:
    member = db.query(WorkspaceMember).filter(
        WorkspaceMember.workspace_id == workspace_id,
        WorkspaceMember.user_id == user_id
    ).first()
    if not member:
        raise HTTPException(status_code=404, detail=ErrorMessages.MEMBER_NOT_FOUND)
    return member


def _owner_count(db: Session, workspace_id: int) -> int:
    return db.query(WorkspaceMember).filter(
        WorkspaceMember.workspace_id == workspace_id,
        WorkspaceMember.role == Roles.OWNER
    ).count()


def _hand_over_ownership(db: Session, workspace_id: int, leaving_user_id: int) -> bool:
    """
    Points ``Workspace.owner_id`` at the longest-standing remaining owner when
    the recorded owner loses the owner role.

    Returns:
        bool: False if the recorded owner is leaving and no other owner remains
    """
    workspace = db.get(Workspace, workspace_id)
    if workspace is None or workspace.owner_id != leaving_user_id:
        return True
    successor = db.query(WorkspaceMember).filter(
        WorkspaceMember.workspace_id == workspace_id,
        WorkspaceMember.role == Roles.OWNER,
        WorkspaceMember.user_id != leaving_user_id
    ).order_by(WorkspaceMember.joined_at, WorkspaceMember.id).first()
    if successor is None:
        return False
    workspace.owner_id = successor.user_id
    logger.info(f"Workspace {workspace_id} ownership passed to user {successor.user_id}")
    return True


def add_member(db: Session, acting: WorkspaceMember, data: MemberCreate) -> WorkspaceMember:
    """
    Adds an existing user to the workspace by email.

    Raises:
        HTTPException: If the user does not exist, is already a member, or a
            non-owner tries to grant the owner role
    """
    role = data.role.value
    if role == Roles.OWNER and acting.role != Roles.OWNER:
        raise HTTPException(status_code=403, detail=ErrorMessages.OWNER_ONLY)

    user = db.query(User).filter(User.email == data.email.strip().lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail=ErrorMessages.USER_NOT_FOUND)

    if db.query(WorkspaceMember.id).filter(
        WorkspaceMember.workspace_id == acting.workspace_id,
        WorkspaceMember.user_id == user.id
    ).first():
        raise HTTPException(status_code=400, detail=ErrorMessages.ALREADY_MEMBER)

    member = WorkspaceMember(workspace_id=acting.workspace_id, user_id=user.id, role=role)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def change_member_role(db: Session, acting: WorkspaceMember, user_id: int, role: str) -> WorkspaceMember:
    """
    Changes a member's role.
    Only owners may grant or revoke the owner role, and the last owner
    cannot be demoted.
    """
    member = _get_member(db, acting.workspace_id, user_id)
    touches_owner = role == Roles.OWNER or member.role == Roles.OWNER
    if touches_owner and acting.role != Roles.OWNER:
        raise HTTPException(status_code=403, detail=ErrorMessages.OWNER_ONLY)

    if member.role == Roles.OWNER and role != Roles.OWNER and _owner_count(db, acting.workspace_id) <= 1:
        raise HTTPException(status_code=400, detail=ErrorMessages.LAST_OWNER)

    if member.role == Roles.OWNER and role != Roles.OWNER:
        _hand_over_ownership(db, acting.workspace_id, user_id)
    member.role = role
    db.commit()
    db.refresh(member)
    return member


def remove_member(db: Session, acting: WorkspaceMember, user_id: int):
    """
    Removes a member. Managers may remove anyone, members only themselves.
    """
    if acting.user_id != user_id and not can_manage_workspace(acting):
        raise HTTPException(status_code=403, detail=ErrorMessages.UNAUTHORIZED)

    member = _get_member(db, acting.workspace_id, user_id)
    if member.role == Roles.OWNER:
        if acting.role != Roles.OWNER:
            raise HTTPException(status_code=403, detail=ErrorMessages.OWNER_ONLY)
        if _owner_count(db, acting.workspace_id) <= 1:
            raise HTTPException(status_code=400, detail=ErrorMessages.LAST_OWNER)
        _hand_over_ownership(db, acting.workspace_id, user_id)

    db.delete(member)
    db.commit()


# ---------------- USERS ---------------- #

def list_visible_users(db: Session, user: User) -> list:
    """
    Distinct users sharing at least one workspace with `user`.
    """
    workspace_ids = get_user_workspace_ids(db, user.id)
    if not workspace_ids:
        return []
    return db.query(User)\
        .join(WorkspaceMember, WorkspaceMember.user_id == User.id)\
        .filter(WorkspaceMember.workspace_id.in_(workspace_ids))\
        .distinct()\
        .order_by(User.name, User.id)\
        .all()


def delete_user(db: Session, user: User):
    """
    Deletes an account.

    Refused while the user created any issue or is the last owner of any
    workspace. Workspaces recording the user as owner pass to another owner.
    Issues assigned to the user are unassigned and memberships removed.

    Raises:
        HTTPException: 409 when the user is still referenced
    """
    if db.query(Issue.id).filter(Issue.creator_id == user.id).first():
        raise HTTPException(status_code=409, detail=ErrorMessages.USER_HAS_ISSUES)

    owned = db.query(WorkspaceMember.workspace_id).filter(
        WorkspaceMember.user_id == user.id,
        WorkspaceMember.role == Roles.OWNER
    ).all()
    if any(_owner_count(db, workspace_id) <= 1 for (workspace_id,) in owned):
        raise HTTPException(status_code=409, detail=ErrorMessages.USER_OWNS_WORKSPACE)

    recorded = db.query(Workspace.id).filter(Workspace.owner_id == user.id).all()
    if not all(_hand_over_ownership(db, workspace_id, user.id) for (workspace_id,) in recorded):
        db.rollback()
        raise HTTPException(status_code=409, detail=ErrorMessages.USER_OWNS_WORKSPACE)

    db.query(Issue).filter(Issue.assignee_id == user.id)\
        .update({Issue.assignee_id: None}, synchronize_session=False)
    db.query(Project).filter(Project.lead_id == user.id)\
        .update({Project.lead_id: None}, synchronize_session=False)
    db.delete(user)
    db.commit()
    logger.info(f"User {user.id} deleted")

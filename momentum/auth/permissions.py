"""
Workspace authorization.

Every workspace-scoped read or write goes through this module. Membership is
resolved once per operation; callers never look up WorkspaceMember rows
themselves.
"""
import logging
from typing import Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from momentum.constants import ErrorMessages, Roles
from momentum.models import User, WorkspaceMember

logger = logging.getLogger(__name__)


def get_membership(db: Session, user_id: int, workspace_id: int) -> Optional[WorkspaceMember]:
    return db.query(WorkspaceMember).filter(
        WorkspaceMember.user_id == user_id,
        WorkspaceMember.workspace_id == workspace_id
    ).first()


def is_member(db: Session, user_id: int, workspace_id: int) -> bool:
    return get_membership(db, user_id, workspace_id) is not None


def get_role(db: Session, user_id: int, workspace_id: int) -> Optional[str]:
    membership = get_membership(db, user_id, workspace_id)
    return membership.role if membership else None


def get_user_workspace_ids(db: Session, user_id: int) -> list:
    rows = db.query(WorkspaceMember.workspace_id).filter(WorkspaceMember.user_id == user_id).all()
    return [row[0] for row in rows]


def check_workspace_access(
    db: Session,
    user: User,
    workspace_id: int,
    roles: Optional[Sequence[str]] = None
) -> WorkspaceMember:
    """
    Ensures the user belongs to the workspace, optionally with one of `roles`.

    Args:
        db: Database session
        user: The calling user
        workspace_id: Target workspace
        roles: Allowed roles, any role when omitted

    Returns:
        WorkspaceMember: The caller's membership

    Raises:
        HTTPException: 403 for non-members and for insufficient roles alike
    """
    membership = get_membership(db, user.id, workspace_id)
    if membership is None:
        logger.warning(f"Access denied: user {user.id} is not a member of workspace {workspace_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.UNAUTHORIZED)

    if roles and membership.role not in roles:
        logger.warning(
            f"Access denied: user {user.id} has role {membership.role} in workspace {workspace_id}, "
            f"needs one of {list(roles)}"
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.UNAUTHORIZED)

    return membership


def load_for_member(db: Session, user: User, model, object_id: int, not_found_message: str):
    """
    Loads a workspace-owned row on behalf of `user`.

    A row living in a workspace the user does not belong to is reported exactly
    like a missing row, so ids reveal nothing across workspaces.

    Args:
        db: Database session
        user: The calling user
        model: Mapped class exposing a ``workspace_id`` attribute
        object_id: Primary key
        not_found_message: Detail used for the 404

    Returns:
        The loaded instance

    Raises:
        HTTPException: 404 when missing or outside the user's workspaces
    """
    instance = db.get(model, object_id)
    if instance is None:
        logger.info(f"{model.__name__} {object_id} not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found_message)

    if not is_member(db, user.id, instance.workspace_id):
        logger.warning(
            f"Access denied: user {user.id} requested {model.__name__} {object_id} "
            f"in workspace {instance.workspace_id}"
        )
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found_message)

    return instance


def can_manage_workspace(membership: WorkspaceMember) -> bool:
    """
    Owners and admins manage settings, members and webhooks.
    """
    return membership.role in Roles.MANAGERS

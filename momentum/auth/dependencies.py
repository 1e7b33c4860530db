from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from momentum.database.session import get_db
from momentum.models import User, Project, Label, Issue
from momentum.config.settings import settings
from momentum.constants import ErrorMessages, Roles
from momentum.auth import permissions

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
):
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        credentials: Bearer token credentials
        db: Database session

    Returns:
        User: The authenticated user instance

    Raises:
        HTTPException: If token is missing or invalid, or user not found
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    token = credentials.credentials
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = payload.get("user_id")
        if not user_id:
            raise HTTPException(status_code=401, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")

    return user


def require_workspace_role(*roles: str):
    """
    Dependency factory guarding routes with a ``workspace_id`` path parameter.

    Args:
        roles: Allowed workspace roles; any member passes when none are given

    Returns:
        function: Dependency returning the caller's WorkspaceMember
    """
    def checker(
        workspace_id: int,
        db: Session = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        return permissions.check_workspace_access(db, user, workspace_id, roles or None)
    return checker


require_workspace_member = require_workspace_role()
require_workspace_manager = require_workspace_role(*Roles.MANAGERS)
require_workspace_owner = require_workspace_role(Roles.OWNER)


def get_member_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Project:
    return permissions.load_for_member(db, user, Project, project_id, ErrorMessages.PROJECT_NOT_FOUND)


def get_member_label(
    label_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Label:
    return permissions.load_for_member(db, user, Label, label_id, ErrorMessages.LABEL_NOT_FOUND)


def get_member_issue(
    issue_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Issue:
    return permissions.load_for_member(db, user, Issue, issue_id, ErrorMessages.ISSUE_NOT_FOUND)

import logging
import re

from fastapi import HTTPException
from sqlalchemy.orm import Session

from momentum.auth.permissions import is_member
from momentum.config.settings import settings
from momentum.constants import DEFAULT_PROJECT_KEY, ErrorMessages, PROJECT_TRACKED_FIELDS, WebhookEvents
from momentum.models import Project, User
from momentum.schemas import ProjectCreate, ProjectUpdate
from momentum.utils.utils import compute_changes, project_to_dict
from momentum.utils.webhook_service import WebhookDispatcher

logger = logging.getLogger(__name__)


def derive_project_key(name: str) -> str:
    """
    Short uppercase key from a project name: the first character of each
    space-separated word, alphanumerics only, at most three of them.

    >>> derive_project_key("Quality Engineering")
    'QE'
    """
    initials = "".join(word[0] for word in name.split(" ") if word)
    key = re.sub(r"[^A-Za-z0-9]", "", initials).upper()[:3]
    return key or DEFAULT_PROJECT_KEY


def list_projects(db: Session, workspace_id: int) -> list:
    return db.query(Project)\
        .filter(Project.workspace_id == workspace_id)\
        .order_by(Project.name, Project.id)\
        .all()


def create_project(
    db: Session,
    user: User,
    workspace_id: int,
    data: ProjectCreate,
    dispatcher: WebhookDispatcher
) -> Project:
    """
    Creates a project with a derived key and a zero issue counter.

    Args:
        db: Database session
        user: Calling member
        workspace_id: Owning workspace
        data: Name plus optional color and description
        dispatcher: Webhook dispatcher notified with ``project.created``

    Returns:
        Project: The created project
    """
    project = Project(
        workspace_id=workspace_id,
        name=data.name,
        key=derive_project_key(data.name),
        color=data.color or settings.DEFAULT_PROJECT_COLOR,
        description=data.description,
        issue_counter=0,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info(f"Project {project.id} ({project.key}) created in workspace {workspace_id} by user {user.id}")

    dispatcher.notify(db, workspace_id, WebhookEvents.PROJECT_CREATED, {
        "action": "created",
        "resource": project_to_dict(project),
    })
    return project


def update_project(
    db: Session,
    project: Project,
    data: ProjectUpdate,
    dispatcher: WebhookDispatcher
) -> Project:
    """
    Applies the fields present in the request.
    The key is only changed when given explicitly.

    Raises:
        HTTPException: If the new lead is not a member of the workspace
    """
    updates = data.model_dump(exclude_unset=True)
    for field in ("name", "color", "key"):
        if field in updates and updates[field] is None:
            updates.pop(field)

    if updates.get("lead_id") is not None and not is_member(db, updates["lead_id"], project.workspace_id):
        raise HTTPException(status_code=400, detail=ErrorMessages.INVALID_LEAD)

    if "key" in updates:
        updates["key"] = updates["key"].upper()

    before = project_to_dict(project)
    for field, value in updates.items():
        setattr(project, field, value)
    db.commit()
    db.refresh(project)
    after = project_to_dict(project)

    payload = {"action": "updated", "resource": after}
    changes = compute_changes(before, after, PROJECT_TRACKED_FIELDS)
    if changes:
        payload["changes"] = changes
    dispatcher.notify(db, project.workspace_id, WebhookEvents.PROJECT_UPDATED, payload)
    return project


def rename_project(db: Session, project: Project, name: str, dispatcher: WebhookDispatcher) -> Project:
    return update_project(db, project, ProjectUpdate(name=name), dispatcher)


def delete_project(db: Session, project: Project, dispatcher: WebhookDispatcher):
    """
    Deletes the project together with its issues.
    The webhook carries the project as it was before deletion.
    """
    snapshot = project_to_dict(project)
    workspace_id = project.workspace_id

    db.delete(project)
    db.commit()
    logger.info(f"Project {snapshot['id']} deleted from workspace {workspace_id}")

    dispatcher.notify(db, workspace_id, WebhookEvents.PROJECT_DELETED, {
        "action": "deleted",
        "resource": snapshot,
    })

"""
Issue Store

Creation, partial update and deletion of issues plus the listing queries
behind the issue endpoints. Identifiers are allocated from the owning
project's counter inside the same transaction as the insert.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from momentum.auth.permissions import check_workspace_access, get_user_workspace_ids, is_member
from momentum.constants import ErrorMessages, ISSUE_TRACKED_FIELDS, WebhookEvents
from momentum.models import Issue, Label, Project, User
from momentum.models.common import utcnow
from momentum.schemas import IssueCreateRequest
from momentum.utils.filters import FilterCriteria, filter_issues, group_by_status
from momentum.utils.utils import compute_changes, issue_to_dict
from momentum.utils.webhook_service import WebhookDispatcher

logger = logging.getLogger(__name__)


def _enum_value(value):
    return getattr(value, "value", value)


def next_issue_number(db: Session, project_id: int) -> int:
    """
    Increments the project's issue counter and returns the new value.

    Must be the first write of the surrounding transaction: the UPDATE takes
    the row (or, on SQLite, the database) write lock, so concurrent creators
    are serialised and every caller reads back its own value.

    Args:
        db: Database session holding the open transaction
        project_id: Project whose counter to bump

    Returns:
        int: The allocated number, starting at 1
    """
    stmt = update(Project)\
        .where(Project.id == project_id)\
        .values(issue_counter=Project.issue_counter + 1)\
        .execution_options(synchronize_session=False)

    if db.get_bind().dialect.update_returning:
        return db.execute(stmt.returning(Project.issue_counter)).scalar_one()

    db.execute(stmt)
    return db.execute(
        select(Project.issue_counter).where(Project.id == project_id)
    ).scalar_one()


def _load_labels(db: Session, workspace_id: int, label_ids: List[int]) -> List[Label]:
    """
    Resolves label ids, all of which must belong to the workspace.

    Raises:
        HTTPException: If any id is unknown or foreign to the workspace
    """
    wanted = set(label_ids or [])
    if not wanted:
        return []
    labels = db.query(Label).filter(
        Label.id.in_(wanted),
        Label.workspace_id == workspace_id
    ).all()
    if len(labels) != len(wanted):
        raise HTTPException(status_code=400, detail=ErrorMessages.INVALID_LABELS)
    return labels


def _check_assignee(db: Session, assignee_id: Optional[int], workspace_id: int):
    if assignee_id is not None and not is_member(db, assignee_id, workspace_id):
        raise HTTPException(status_code=400, detail=ErrorMessages.INVALID_ASSIGNEE)


def _check_parent(db: Session, parent_id: Optional[int], workspace_id: int):
    if parent_id is None:
        return
    parent = db.get(Issue, parent_id)
    if parent is None or parent.workspace_id != workspace_id:
        raise HTTPException(status_code=400, detail=ErrorMessages.INVALID_PARENT)


def create_issue(
    db: Session,
    user: User,
    project: Project,
    data: IssueCreateRequest,
    dispatcher: WebhookDispatcher
) -> Issue:
    """
    Creates an issue in `project` with the next identifier of that project.

    Args:
        db: Database session
        user: Calling member, recorded as creator
        project: Target project, already authorized
        data: Validated request body
        dispatcher: Webhook dispatcher notified with ``issue.created``

    Returns:
        Issue: The persisted issue with its labels

    Raises:
        HTTPException: 400 if assignee, labels or parent fall outside the
            workspace; 500 if the transaction fails
    """
    workspace_id = project.workspace_id

    # All validation reads happen before the counter write
    _check_assignee(db, data.assignee_id, workspace_id)
    _check_parent(db, data.parent_id, workspace_id)
    labels = _load_labels(db, workspace_id, data.labels)
    project_id = project.id
    key = project.key

    try:
        number = next_issue_number(db, project_id)
        issue = Issue(
            identifier=f"{key}-{number}",
            title=data.title,
            description=data.description,
            status=_enum_value(data.status),
            priority=_enum_value(data.priority),
            project_id=project_id,
            assignee_id=data.assignee_id,
            creator_id=user.id,
            parent_id=data.parent_id,
            estimate=data.estimate,
            due_date=data.due_date,
        )
        issue.labels = labels
        db.add(issue)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to create issue in project {project_id}")
        raise HTTPException(status_code=500, detail="Failed to create issue")

    db.refresh(issue)
    logger.info(f"Issue {issue.identifier} created by user {user.id}")

    dispatcher.notify(db, workspace_id, WebhookEvents.ISSUE_CREATED, {
        "action": "created",
        "resource": issue_to_dict(issue),
    })
    return issue


def update_issue(
    db: Session,
    user: User,
    issue: Issue,
    changes: Dict[str, Any],
    dispatcher: WebhookDispatcher
) -> Issue:
    """
    Applies a partial update.

    Only keys present in `changes` are touched; a present key with a None
    value clears that field. ``labels`` replaces the whole label set.
    ``updated_at`` is refreshed on every call.

    Args:
        db: Database session
        user: Calling member
        issue: Issue to modify, already authorized
        changes: Fields the caller sent, as produced by
            ``IssueUpdateRequest.changes()``
        dispatcher: Webhook dispatcher notified with ``issue.updated``

    Returns:
        Issue: The updated issue
    """
    workspace_id = issue.workspace_id

    if "assignee_id" in changes:
        _check_assignee(db, changes["assignee_id"], workspace_id)
    labels = _load_labels(db, workspace_id, changes["labels"]) if "labels" in changes else None

    before = issue_to_dict(issue)
    for field, value in changes.items():
        if field == "labels":
            issue.labels = labels
        else:
            setattr(issue, field, _enum_value(value))
    issue.updated_at = utcnow()

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to update issue {issue.id}")
        raise HTTPException(status_code=500, detail="Failed to update issue")

    db.refresh(issue)
    after = issue_to_dict(issue)
    logger.info(f"Issue {issue.identifier} updated by user {user.id}: {sorted(changes)}")

    payload = {"action": "updated", "resource": after}
    diff = compute_changes(before, after, ISSUE_TRACKED_FIELDS)
    if diff:
        payload["changes"] = diff
    dispatcher.notify(db, workspace_id, WebhookEvents.ISSUE_UPDATED, payload)
    return issue


def delete_issue(db: Session, user: User, issue: Issue, dispatcher: WebhookDispatcher):
    """
    Deletes an issue and its label associations.
    Sub-issues are kept and become top-level issues.
    """
    snapshot = issue_to_dict(issue)
    workspace_id = issue.workspace_id

    for child in list(issue.sub_issues):
        child.parent_id = None
    db.delete(issue)
    db.commit()
    logger.info(f"Issue {snapshot['identifier']} deleted by user {user.id}")

    dispatcher.notify(db, workspace_id, WebhookEvents.ISSUE_DELETED, {
        "action": "deleted",
        "resource": snapshot,
    })


def get_issue_detail(issue: Issue) -> dict:
    return issue_to_dict(issue, include_sub_issues=True)


def list_issues(
    db: Session,
    user: User,
    criteria: Optional[FilterCriteria] = None,
    workspace_id: Optional[int] = None
) -> List[Issue]:
    """
    Issues from the caller's workspaces matching `criteria`, newest first.

    Args:
        db: Database session
        user: Calling user
        criteria: Effective filter, everything when omitted
        workspace_id: Restrict to one workspace the caller belongs to

    Returns:
        list: Matching Issue rows with labels loaded
    """
    if workspace_id is not None:
        check_workspace_access(db, user, workspace_id)
        workspace_ids = [workspace_id]
    else:
        workspace_ids = get_user_workspace_ids(db, user.id)
    if not workspace_ids:
        return []

    issues = db.query(Issue)\
        .join(Project, Issue.project_id == Project.id)\
        .options(selectinload(Issue.labels))\
        .filter(Project.workspace_id.in_(workspace_ids))\
        .order_by(Issue.created_at.desc(), Issue.id.desc())\
        .all()
    return filter_issues(issues, criteria)


def board(db: Session, user: User, criteria: Optional[FilterCriteria] = None, workspace_id: Optional[int] = None):
    return group_by_status(list_issues(db, user, criteria, workspace_id))

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from momentum.database.session import get_db
from momentum.models import Issue, Project, User
from momentum.auth.dependencies import get_current_user, get_member_issue, get_member_project
from momentum.constants import SuccessMessages
from momentum.schemas import IssueCreateRequest, IssueUpdateRequest, IssueStatus, IssuePriority
from momentum.utils.filters import BUILTIN_VIEWS, FilterCriteria, non_empty_groups, resolve_criteria
from momentum.utils.utils import issue_to_dict
from momentum.utils import issue_service
from momentum.utils.webhook_service import WebhookDispatcher, get_webhook_dispatcher

router = APIRouter(tags=["Issues"])


def issue_filters(
    view: Optional[str] = None,
    status: Optional[List[IssueStatus]] = Query(None),
    priority: Optional[List[IssuePriority]] = Query(None),
    assignee_id: Optional[int] = None,
    project_id: Optional[int] = None,
    search: Optional[str] = None,
    labels: Optional[List[int]] = Query(None),
    user: User = Depends(get_current_user),
) -> FilterCriteria:
    """
    Builds the effective filter from an optional view plus ad-hoc query
    parameters. Each ad-hoc parameter replaces the view's value for that field.
    """
    try:
        return resolve_criteria(
            view_id=view,
            current_user_id=user.id,
            status=[s.value for s in status or []],
            priority=[p.value for p in priority or []],
            assignee_id=assignee_id,
            project_id=project_id,
            search=search,
            label_ids=labels,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"view: {e}")


@router.get("/issues")
def list_issues(
    workspace_id: Optional[int] = None,
    criteria: FilterCriteria = Depends(issue_filters),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Issues across the caller's workspaces, newest first"""
    issues = issue_service.list_issues(db, user, criteria, workspace_id)
    return [issue_to_dict(i) for i in issues]


@router.get("/issues/board")
def get_board(
    workspace_id: Optional[int] = None,
    hide_empty: bool = False,
    criteria: FilterCriteria = Depends(issue_filters),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Issues grouped by status in display order.
    All six columns are returned unless hide_empty is set.
    """
    groups = issue_service.board(db, user, criteria, workspace_id)
    if hide_empty:
        groups = non_empty_groups(groups)
    return [
        {"status": status, "count": len(items), "issues": [issue_to_dict(i) for i in items]}
        for status, items in groups.items()
    ]


@router.get("/issues/views")
def list_views(user: User = Depends(get_current_user)):
    return [view.to_dict() for view in BUILTIN_VIEWS]


@router.post("/projects/{project_id}/issues", status_code=201)
def create_issue(
    request: IssueCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    project: Project = Depends(get_member_project),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
):
    issue = issue_service.create_issue(db, user, project, request, dispatcher)
    return issue_to_dict(issue)


@router.get("/issues/{issue_id}")
def get_issue(issue: Issue = Depends(get_member_issue)):
    """Issue with its labels and direct sub-issues"""
    return issue_service.get_issue_detail(issue)


@router.patch("/issues/{issue_id}")
def update_issue(
    request: IssueUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    issue: Issue = Depends(get_member_issue),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
):
    """
    Partial update. Omitted fields are left alone; assignee_id, estimate,
    due_date and description sent as null are cleared.
    """
    issue = issue_service.update_issue(db, user, issue, request.changes(), dispatcher)
    return issue_to_dict(issue)


@router.delete("/issues/{issue_id}")
def delete_issue(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    issue: Issue = Depends(get_member_issue),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
):
    issue_service.delete_issue(db, user, issue, dispatcher)
    return {"message": SuccessMessages.ISSUE_DELETED}

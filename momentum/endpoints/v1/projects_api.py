from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from momentum.database.session import get_db
from momentum.models import Project, WorkspaceMember
from momentum.auth.dependencies import get_member_project, require_workspace_member
from momentum.constants import SuccessMessages
from momentum.schemas import ProjectCreate, ProjectUpdate
from momentum.utils.utils import project_to_dict
from momentum.utils import project_service
from momentum.utils.webhook_service import WebhookDispatcher, get_webhook_dispatcher

router = APIRouter(tags=["Projects"])


@router.get("/workspaces/{workspace_id}/projects")
def list_projects(
    workspace_id: int,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_member)
):
    """Projects of the workspace, ordered by name"""
    return [project_to_dict(p) for p in project_service.list_projects(db, workspace_id)]


@router.post("/workspaces/{workspace_id}/projects", status_code=201)
def create_project(
    workspace_id: int,
    request: ProjectCreate,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_member),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
):
    """
    Creates a project. The key is derived from the name.
    """
    project = project_service.create_project(db, membership.user, workspace_id, request, dispatcher)
    return project_to_dict(project)


@router.get("/projects/{project_id}")
def get_project(project: Project = Depends(get_member_project)):
    return project_to_dict(project)


@router.patch("/projects/{project_id}")
def update_project(
    request: ProjectUpdate,
    db: Session = Depends(get_db),
    project: Project = Depends(get_member_project),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
):
    project = project_service.update_project(db, project, request, dispatcher)
    return project_to_dict(project)


@router.delete("/projects/{project_id}")
def delete_project(
    db: Session = Depends(get_db),
    project: Project = Depends(get_member_project),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
):
    """
    Deletes a project and all of its issues.
    """
    project_service.delete_project(db, project, dispatcher)
    return {"message": SuccessMessages.PROJECT_DELETED}

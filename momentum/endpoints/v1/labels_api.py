from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from momentum.database.session import get_db
from momentum.models import Label, WorkspaceMember
from momentum.auth.dependencies import get_member_label, require_workspace_member
from momentum.constants import SuccessMessages
from momentum.schemas import LabelCreate, LabelUpdate
from momentum.utils.utils import label_to_dict
from momentum.utils import label_service

router = APIRouter(tags=["Labels"])


@router.get("/workspaces/{workspace_id}/labels")
def list_labels(
    workspace_id: int,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_member)
):
    return [label_to_dict(l) for l in label_service.list_labels(db, workspace_id)]


@router.post("/workspaces/{workspace_id}/labels", status_code=201)
def create_label(
    workspace_id: int,
    request: LabelCreate,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_member)
):
    return label_to_dict(label_service.create_label(db, workspace_id, request))


@router.patch("/labels/{label_id}")
def update_label(
    request: LabelUpdate,
    db: Session = Depends(get_db),
    label: Label = Depends(get_member_label)
):
    return label_to_dict(label_service.update_label(db, label, request))


@router.delete("/labels/{label_id}")
def delete_label(
    db: Session = Depends(get_db),
    label: Label = Depends(get_member_label)
):
    """Removes the label from every issue carrying it; the issues stay."""
    label_service.delete_label(db, label)
    return {"message": SuccessMessages.LABEL_DELETED}

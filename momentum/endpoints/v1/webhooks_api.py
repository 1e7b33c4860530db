from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from momentum.database.session import get_db
from momentum.models import WorkspaceMember
from momentum.auth.dependencies import require_workspace_manager
from momentum.constants import SuccessMessages
from momentum.schemas import WebhookSaveRequest
from momentum.utils.utils import webhook_to_dict
from momentum.utils import webhook_service
from momentum.utils.webhook_service import WebhookDispatcher, get_webhook_dispatcher

router = APIRouter(prefix="/workspaces/{workspace_id}/webhook", tags=["Webhooks"])


@router.get("")
def get_webhook(
    workspace_id: int,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_manager)
):
    """The workspace's webhook configuration, or null when none is set"""
    return webhook_to_dict(WebhookDispatcher.get_config(db, workspace_id))


@router.put("")
def save_webhook(
    workspace_id: int,
    request: WebhookSaveRequest,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_manager)
):
    return webhook_to_dict(webhook_service.save_webhook(db, workspace_id, request))


@router.delete("")
def delete_webhook(
    workspace_id: int,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_manager)
):
    webhook_service.delete_webhook(db, workspace_id)
    return {"message": SuccessMessages.WEBHOOK_DELETED}


@router.post("/test")
def test_webhook(
    workspace_id: int,
    db: Session = Depends(get_db),
    membership: WorkspaceMember = Depends(require_workspace_manager),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
):
    """
    Sends a test event right away and reports the outcome.
    Works even when the webhook is disabled.
    """
    return dispatcher.send_test(db, workspace_id)

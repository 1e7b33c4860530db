from momentum.schemas.user_schema import LoginRequest, SignupRequest, UserUpdate
from momentum.schemas.workspace_schema import (
    WorkspaceRole,
    WorkspaceCreate,
    WorkspaceUpdate,
    MemberCreate,
    MemberUpdate,
)
from momentum.schemas.project_schema import ProjectCreate, ProjectUpdate, LabelCreate, LabelUpdate
from momentum.schemas.issue_schema import (
    IssueStatus,
    IssuePriority,
    IssueCreateRequest,
    IssueUpdateRequest,
)
from momentum.schemas.webhook_schema import WebhookEvent, WebhookSaveRequest

__all__ = [
    "LoginRequest",
    "SignupRequest",
    "UserUpdate",
    "WorkspaceRole",
    "WorkspaceCreate",
    "WorkspaceUpdate",
    "MemberCreate",
    "MemberUpdate",
    "ProjectCreate",
    "ProjectUpdate",
    "LabelCreate",
    "LabelUpdate",
    "IssueStatus",
    "IssuePriority",
    "IssueCreateRequest",
    "IssueUpdateRequest",
    "WebhookEvent",
    "WebhookSaveRequest",
]

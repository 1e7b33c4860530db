from momentum.models.user import User
from momentum.models.workspace import Workspace, WorkspaceMember
from momentum.models.project import Project, Label
from momentum.models.issue import Issue
from momentum.models.webhook import Webhook
from momentum.models.common import issue_labels

# Export everything for easy access
__all__ = [
    "User",
    "Workspace",
    "WorkspaceMember",
    "Project",
    "Label",
    "Issue",
    "Webhook",
    "issue_labels",
]

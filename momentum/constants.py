class ErrorMessages:
    WORKSPACE_NOT_FOUND = "Workspace not found"
    PROJECT_NOT_FOUND = "Project not found"
    ISSUE_NOT_FOUND = "Issue not found"
    LABEL_NOT_FOUND = "Label not found"
    USER_NOT_FOUND = "User not found"
    MEMBER_NOT_FOUND = "Member not found"

    # Auth
    INVALID_CREDENTIALS = "Invalid email or password"
    EMAIL_EXISTS = "Email already registered"

    # Permissions
    UNAUTHORIZED = "Unauthorized"
    OWNER_ONLY = "Only the workspace owner can perform this action"
    LAST_OWNER = "A workspace must keep at least one owner"
    ALREADY_MEMBER = "User is already a member of this workspace"

    # Referential policy
    USER_HAS_ISSUES = "User cannot be deleted while they are the creator of issues"
    USER_OWNS_WORKSPACE = "User cannot be deleted while they are the last owner of a workspace"

    # Validation
    SLUG_TAKEN = "Workspace slug already in use"
    INVALID_ASSIGNEE = "assignee_id: user is not a member of this workspace"
    INVALID_LEAD = "lead_id: user is not a member of this workspace"
    INVALID_LABELS = "labels: one or more labels do not belong to this workspace"
    INVALID_PARENT = "parent_id: parent issue not found in this workspace"

    # Webhooks
    NO_WEBHOOK = "No webhook configured"


class SuccessMessages:
    WORKSPACE_DELETED = "Workspace deleted successfully"
    PROJECT_DELETED = "Project deleted successfully"
    ISSUE_DELETED = "Issue deleted successfully"
    LABEL_DELETED = "Label deleted successfully"
    MEMBER_REMOVED = "Member removed successfully"
    WEBHOOK_DELETED = "Webhook deleted successfully"
    USER_DELETED = "Account deleted successfully"


class Roles:
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    ALL_ROLES = [OWNER, ADMIN, MEMBER]
    MANAGERS = [OWNER, ADMIN]


class IssueStatuses:
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"
    CANCELLED = "cancelled"
    # Display order of the status buckets
    ALL = [BACKLOG, TODO, IN_PROGRESS, IN_REVIEW, DONE, CANCELLED]


class IssuePriorities:
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"
    ALL = [URGENT, HIGH, MEDIUM, LOW, NONE]


class WebhookEvents:
    ISSUE_CREATED = "issue.created"
    ISSUE_UPDATED = "issue.updated"
    ISSUE_DELETED = "issue.deleted"
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"
    PROJECT_DELETED = "project.deleted"
    ALL = [
        ISSUE_CREATED,
        ISSUE_UPDATED,
        ISSUE_DELETED,
        PROJECT_CREATED,
        PROJECT_UPDATED,
        PROJECT_DELETED,
    ]


# Fields reported in the "changes" map of update events
ISSUE_TRACKED_FIELDS = [
    "title",
    "description",
    "status",
    "priority",
    "assignee_id",
    "estimate",
    "due_date",
]
PROJECT_TRACKED_FIELDS = ["name", "color", "description", "key"]

DEFAULT_LABELS = [
    ("Bug", "#FF708C"),
    ("Feature", "#9D58BF"),
    ("Improvement", "#FF9838"),
]
DEFAULT_PROJECT_NAME = "My Project"
DEFAULT_PROJECT_KEY = "PRJ"
DEFAULT_PROJECT_DESCRIPTION = "Your first project"

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

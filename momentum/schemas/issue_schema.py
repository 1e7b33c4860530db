from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from enum import Enum


class IssueStatus(str, Enum):
    backlog = "backlog"
    todo = "todo"
    in_progress = "in_progress"
    in_review = "in_review"
    done = "done"
    cancelled = "cancelled"


class IssuePriority(str, Enum):
    urgent = "urgent"
    high = "high"
    medium = "medium"
    low = "low"
    none = "none"


class IssueCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    status: IssueStatus = IssueStatus.backlog
    priority: IssuePriority = IssuePriority.none
    assignee_id: Optional[int] = None
    labels: List[int] = []
    estimate: Optional[int] = None
    due_date: Optional[datetime] = None
    parent_id: Optional[int] = None


class IssueUpdateRequest(BaseModel):
    """
    Partial issue update.
    Fields left out of the request body are untouched; assignee_id, estimate,
    due_date and description sent as null are cleared. The distinction is read
    from ``model_fields_set``.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[IssueStatus] = None
    priority: Optional[IssuePriority] = None
    assignee_id: Optional[int] = None
    labels: Optional[List[int]] = None
    estimate: Optional[int] = None
    due_date: Optional[datetime] = None

    @field_validator("title", "status", "priority", "labels")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    def changes(self) -> dict:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from enum import Enum


class WebhookEvent(str, Enum):
    issue_created = "issue.created"
    issue_updated = "issue.updated"
    issue_deleted = "issue.deleted"
    project_created = "project.created"
    project_updated = "project.updated"
    project_deleted = "project.deleted"


class WebhookSaveRequest(BaseModel):
    url: str
    secret: Optional[str] = None
    enabled: bool = True
    events: List[WebhookEvent] = Field(..., min_length=1)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("url must be an absolute http(s) URL")
        return value

from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from momentum.database.base import Base
from momentum.models.common import utcnow


class Webhook(Base):
    """
    Outbound webhook configuration.
    A workspace has at most one.
    """
    __tablename__ = "webhooks"

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(
        Integer,
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    url = Column(Text, nullable=False)
    secret = Column(Text, nullable=True)  # Optional HMAC signing secret
    enabled = Column(Boolean, nullable=False, default=True)
    events = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    workspace = relationship("Workspace", back_populates="webhook")

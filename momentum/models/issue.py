from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from momentum.database.base import Base
from momentum.models.common import issue_labels, utcnow


class Issue(Base):
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    identifier = Column(String(20), unique=True, nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="backlog")
    priority = Column(String(20), nullable=False, default="none")

    project_id = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    assignee_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    # Creators are never cascaded; see user deletion policy
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Hierarchy
    parent_id = Column(Integer, ForeignKey("issues.id", ondelete="SET NULL"), nullable=True)

    estimate = Column(Integer, nullable=True)
    due_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    project = relationship("Project", back_populates="issues")
    assignee = relationship("User", foreign_keys=[assignee_id])
    creator = relationship("User", foreign_keys=[creator_id])
    parent = relationship("Issue", remote_side=[id], backref="sub_issues")
    labels = relationship(
        "Label",
        secondary=issue_labels,
        order_by="Label.name",
        backref="issues"
    )

    @property
    def workspace_id(self) -> int:
        return self.project.workspace_id

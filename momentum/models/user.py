from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from momentum.database.base import Base
from momentum.models.common import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    memberships = relationship(
        "WorkspaceMember",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    @property
    def initials(self) -> str:
        letters = [part[0] for part in (self.name or "").split(" ") if part]
        return "".join(letters).upper()[:2] or "U"

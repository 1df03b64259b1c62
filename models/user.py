import enum

from sqlalchemy import Column, Integer, String, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from db import Base


class AccessStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    email = Column(String, unique=True, nullable=False)
    employee_id = Column(String, unique=True, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    password = Column(String, nullable=False)
    # NULL is read as pending, see effective_status
    status = Column(String, default=AccessStatus.PENDING.value)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=True)
    granted_sections = Column(JSON, default=list)
    status_changed_at = Column(DateTime(timezone=True))
    decided_by_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)

    role = relationship("Role")

    @property
    def effective_status(self) -> AccessStatus:
        return AccessStatus(self.status) if self.status else AccessStatus.PENDING

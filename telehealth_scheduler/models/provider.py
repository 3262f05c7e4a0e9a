"""
Provider database model
Just enough of the provider profile to gate booking calls
"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, String

from telehealth_scheduler.database import Base


class ApprovalStatus(PyEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class Provider(Base):
    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    name = Column(String(200), nullable=False)
    approval_status = Column(String(20), nullable=False, default=ApprovalStatus.PENDING.value)
    is_active = Column(Boolean, nullable=False, default=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("id", str(uuid.uuid4()))
        kwargs.setdefault("approval_status", ApprovalStatus.PENDING.value)
        kwargs.setdefault("is_active", True)
        super().__init__(**kwargs)

    @property
    def is_bookable(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED.value and bool(self.is_active)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

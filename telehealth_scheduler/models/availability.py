"""
Provider availability database model
Recurring weekly working-hour windows, stored as local "HH:MM" strings
"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, Index, String

from telehealth_scheduler.database import Base


class DayOfWeek(PyEnum):
    """Day of week, ordered as datetime.weekday() (Monday == 0)"""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, value) -> "DayOfWeek":
        """Day of week for a date or (local) datetime"""
        return list(cls)[value.weekday()]


class ProviderAvailability(Base):
    """
    A provider's availability window for one day of the week

    start_time/end_time are zero-padded 24h "HH:MM" strings in the provider's
    local time, so lexicographic comparison matches chronological order.
    Windows for the same provider and day are assumed not to overlap.
    """
    __tablename__ = "provider_availability"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    provider_id = Column(String(36), nullable=False, index=True)
    day_of_week = Column(String(10), nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    is_available = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("idx_availability_provider_day", "provider_id", "day_of_week"),
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("id", str(uuid.uuid4()))
        kwargs.setdefault("is_available", True)
        if isinstance(kwargs.get("day_of_week"), DayOfWeek):
            kwargs["day_of_week"] = kwargs["day_of_week"].value
        super().__init__(**kwargs)

    def covers(self, time_str: str) -> bool:
        """True if an HH:MM local time falls inside [start_time, end_time)"""
        return bool(self.is_available) and self.start_time <= time_str < self.end_time

    def __repr__(self):
        return f"<ProviderAvailability(provider={self.provider_id}, {self.day_of_week} {self.start_time}-{self.end_time})>"

import uuid

from sqlalchemy import (
    Column, Integer, ForeignKey, DateTime, Time, Boolean, Uuid,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class AvailabilitySlot(Base):
    """A recurring weekly window in which a doctor accepts bookings.

    ``day_of_week`` counts from Sunday = 0 to Saturday = 6.
    """
    __tablename__ = "availability_slots"
    __table_args__ = (
        UniqueConstraint("doctor_id", "day_of_week", "start_time", name="uq_availability_doctor_day_start"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    doctor = relationship("User")

    def __repr__(self):
        return (
            f"<AvailabilitySlot(doctor_id={self.doctor_id}, day={self.day_of_week}, "
            f"{self.start_time}-{self.end_time})>"
        )

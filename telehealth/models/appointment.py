import uuid

from sqlalchemy import (
    Column, String, ForeignKey, Date, DateTime, Time, Text, Uuid, Index,
    Enum as SQLEnum, text,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

# Forward-only lifecycle; cancellation is only reachable from SCHEDULED
ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}

# At most one live booking per doctor, date and start time
_ACTIVE_SLOT_PREDICATE = text("status <> 'cancelled'")

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "doctor_id", "appointment_date", "start_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Relationships
    patient_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Appointment details
    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(
        SQLEnum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    symptoms = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    video_channel_name = Column(String(255), unique=True, nullable=False)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("User", foreign_keys=[patient_id])
    doctor = relationship("User", foreign_keys=[doctor_id])
    medical_record = relationship("MedicalRecord", back_populates="appointment", uselist=False)

    def can_transition_to(self, new_status: AppointmentStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[AppointmentStatus(self.status)]

    def is_participant(self, user_id) -> bool:
        return user_id in (self.patient_id, self.doctor_id)

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, "
            f"date='{self.appointment_date}', start='{self.start_time}')>"
        )

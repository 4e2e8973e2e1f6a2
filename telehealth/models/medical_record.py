import uuid

from sqlalchemy import Column, ForeignKey, DateTime, Text, Uuid, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    appointment_id = Column(Uuid, ForeignKey("appointments.id"), unique=True, nullable=False)

    diagnosis = Column(Text, nullable=True)
    symptoms = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    vital_signs = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    doctor = relationship("User", foreign_keys=[doctor_id])
    appointment = relationship("Appointment", back_populates="medical_record")
    prescription = relationship("Prescription", back_populates="medical_record", uselist=False)

    def __repr__(self):
        return f"<MedicalRecord(id={self.id}, patient_id={self.patient_id}, appointment_id={self.appointment_id})>"

class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    medical_record_id = Column(Uuid, ForeignKey("medical_records.id", ondelete="CASCADE"), nullable=False)
    appointment_id = Column(Uuid, ForeignKey("appointments.id"), nullable=False)
    patient_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    # List of {name, dosage, frequency, duration}
    medications = Column(JSON, nullable=False)
    instructions = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    doctor = relationship("User", foreign_keys=[doctor_id])
    appointment = relationship("Appointment")
    medical_record = relationship("MedicalRecord", back_populates="prescription")

    def __repr__(self):
        return f"<Prescription(id={self.id}, patient_id={self.patient_id})>"

import uuid

from sqlalchemy import Column, String, ForeignKey, Date, DateTime, Text, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class PatientProfile(Base):
    __tablename__ = "patient_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Personal information
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    blood_group = Column(String(10), nullable=True)

    # Contact information
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    pincode = Column(String(20), nullable=True)
    emergency_contact = Column(String(100), nullable=True)

    # Medical information
    allergies = Column(Text, nullable=True)
    chronic_conditions = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="patient_profile")

    def __repr__(self):
        return f"<PatientProfile(id={self.id}, user_id={self.user_id})>"

import uuid

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, Text, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

DEFAULT_SPECIALIZATION = "General Physician"
DEFAULT_QUALIFICATION = "MBBS"

class DoctorProfile(Base):
    __tablename__ = "doctor_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Professional information
    specialization = Column(String(100), nullable=False, default=DEFAULT_SPECIALIZATION)
    qualification = Column(String(255), nullable=False, default=DEFAULT_QUALIFICATION)
    experience_years = Column(Integer, nullable=True)
    registration_number = Column(String(50), nullable=True)
    bio = Column(Text, nullable=True)

    # Practice information
    hospital_name = Column(String(255), nullable=True)
    hospital_address = Column(String(255), nullable=True)
    consultation_fee = Column(Numeric(10, 2), nullable=True)

    # Reputation
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    total_consultations = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor_profile")

    def __repr__(self):
        return f"<DoctorProfile(id={self.id}, user_id={self.user_id}, specialization='{self.specialization}')>"

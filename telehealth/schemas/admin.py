import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .auth import UserResponse


class SystemStats(BaseModel):
    total_patients: int
    total_doctors: int
    pending_doctors: int
    scheduled_appointments: int
    completed_appointments: int
    cancelled_appointments: int
    total_medical_records: int
    total_prescriptions: int


class PendingDoctorResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    specialization: str
    qualification: str
    experience_years: Optional[int] = None
    hospital_name: Optional[str] = None
    registration_number: Optional[str] = None


class UserActionResponse(BaseModel):
    message: str
    user: UserResponse

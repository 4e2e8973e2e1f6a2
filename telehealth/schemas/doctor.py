import uuid
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.appointment import AppointmentStatus
from .common import parse_hh_mm


class DoctorSummary(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    specialization: str
    qualification: str
    experience_years: Optional[int] = None
    hospital_name: Optional[str] = None
    bio: Optional[str] = None
    consultation_fee: Optional[float] = None
    rating: float = 0
    total_consultations: int = 0


class DoctorDetail(DoctorSummary):
    hospital_address: Optional[str] = None


class DoctorProfileResponse(DoctorDetail):
    is_approved: bool
    registration_number: Optional[str] = None


class DoctorProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    specialization: Optional[str] = Field(default=None, min_length=1, max_length=100)
    qualification: Optional[str] = Field(default=None, min_length=1, max_length=255)
    experience_years: Optional[int] = Field(default=None, ge=0)
    hospital_name: Optional[str] = None
    hospital_address: Optional[str] = None
    registration_number: Optional[str] = Field(default=None, max_length=50)
    bio: Optional[str] = None
    consultation_fee: Optional[float] = Field(default=None, ge=0)


class AvailabilitySlotCreate(BaseModel):
    # Sunday = 0 ... Saturday = 6
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    is_available: bool = True

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_hh_mm(cls, value):
        return parse_hh_mm(value)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class AvailabilitySlotResponse(BaseModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool

    class Config:
        from_attributes = True


class DoctorAppointmentResponse(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    symptoms: Optional[str] = None
    cancellation_reason: Optional[str] = None
    video_channel_name: str
    patient_first_name: str
    patient_last_name: str
    patient_phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    blood_group: Optional[str] = None
    allergies: Optional[str] = None
    chronic_conditions: Optional[str] = None


class PatientHistoryEntry(BaseModel):
    id: uuid.UUID
    appointment_id: uuid.UUID
    doctor_id: uuid.UUID
    diagnosis: Optional[str] = None
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    vital_signs: Optional[Dict[str, Any]] = None
    medications: Optional[List[Dict[str, Any]]] = None
    prescription_instructions: Optional[str] = None
    created_at: Optional[datetime] = None

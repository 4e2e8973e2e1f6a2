import uuid
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.appointment import AppointmentStatus


class PatientProfileResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    emergency_contact: Optional[str] = None
    allergies: Optional[str] = None
    chronic_conditions: Optional[str] = None


class PatientProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(default=None, max_length=20)
    blood_group: Optional[str] = Field(default=None, max_length=10)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    pincode: Optional[str] = Field(default=None, max_length=20)
    emergency_contact: Optional[str] = Field(default=None, max_length=100)
    allergies: Optional[str] = None
    chronic_conditions: Optional[str] = None


class PatientAppointmentResponse(BaseModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    symptoms: Optional[str] = None
    cancellation_reason: Optional[str] = None
    video_channel_name: str
    doctor_first_name: str
    doctor_last_name: str
    specialization: Optional[str] = None
    hospital_name: Optional[str] = None


class MedicalHistoryEntry(BaseModel):
    id: uuid.UUID
    appointment_id: uuid.UUID
    doctor_id: uuid.UUID
    diagnosis: Optional[str] = None
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    vital_signs: Optional[Dict[str, Any]] = None
    doctor_first_name: str
    doctor_last_name: str
    specialization: Optional[str] = None
    appointment_date: Optional[date] = None
    created_at: Optional[datetime] = None


class PrescriptionResponse(BaseModel):
    id: uuid.UUID
    medical_record_id: uuid.UUID
    appointment_id: uuid.UUID
    doctor_id: uuid.UUID
    medications: List[Dict[str, Any]]
    instructions: Optional[str] = None
    doctor_first_name: str
    doctor_last_name: str
    specialization: Optional[str] = None
    appointment_date: Optional[date] = None
    created_at: Optional[datetime] = None

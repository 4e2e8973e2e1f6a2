import uuid
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.appointment import AppointmentStatus
from .common import parse_hh_mm


class AppointmentSlot(BaseModel):
    appointment_date: date
    start_time: time
    end_time: time

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_hh_mm(cls, value):
        return parse_hh_mm(value)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class AppointmentCreate(AppointmentSlot):
    doctor_id: uuid.UUID
    symptoms: Optional[str] = Field(default=None, max_length=2000)


class AppointmentReschedule(AppointmentSlot):
    pass


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class AppointmentResponse(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    symptoms: Optional[str] = None
    cancellation_reason: Optional[str] = None
    video_channel_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentDetailResponse(AppointmentResponse):
    patient_first_name: str
    patient_last_name: str
    doctor_first_name: str
    doctor_last_name: str
    specialization: Optional[str] = None
    hospital_name: Optional[str] = None


class AppointmentActionResponse(BaseModel):
    message: str
    appointment: AppointmentResponse


class Medication(BaseModel):
    name: str = Field(min_length=1)
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None


class MedicalRecordCreate(BaseModel):
    diagnosis: Optional[str] = None
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    vital_signs: Optional[Dict[str, Any]] = None
    medications: List[Medication] = []
    instructions: Optional[str] = None


class MedicalRecordResponse(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_id: uuid.UUID
    diagnosis: Optional[str] = None
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    vital_signs: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MedicalRecordActionResponse(BaseModel):
    message: str
    medical_record: MedicalRecordResponse

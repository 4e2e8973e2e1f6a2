from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
import uuid

from ...core.database import get_db
from ...api.deps import get_current_user, get_patient_user, get_doctor_user
from ...services.booking_service import BookingService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentReschedule, AppointmentStatusUpdate, AppointmentCancel,
    AppointmentResponse, AppointmentDetailResponse, AppointmentActionResponse,
    MedicalRecordCreate, MedicalRecordResponse, MedicalRecordActionResponse
)
from ...models.user import User

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("/", response_model=AppointmentActionResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    appointment_data: AppointmentCreate,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    """Book a slot with a doctor."""
    appointment = BookingService(db).book_appointment(current_user, appointment_data)
    return AppointmentActionResponse(
        message="Appointment booked successfully",
        appointment=AppointmentResponse.model_validate(appointment),
    )

@router.get("/{appointment_id}", response_model=AppointmentDetailResponse)
async def get_appointment(
    appointment_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return BookingService(db).get_appointment_detail(appointment_id, current_user)

@router.patch("/{appointment_id}/status", response_model=AppointmentActionResponse)
async def update_status(
    appointment_id: uuid.UUID,
    status_update: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Move an appointment forward through its lifecycle."""
    appointment = BookingService(db).update_status(appointment_id, current_user, status_update.status)
    return AppointmentActionResponse(
        message="Appointment status updated",
        appointment=AppointmentResponse.model_validate(appointment),
    )

@router.post("/{appointment_id}/cancel", response_model=AppointmentActionResponse)
async def cancel_appointment(
    appointment_id: uuid.UUID,
    cancel_data: Optional[AppointmentCancel] = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    reason = cancel_data.reason if cancel_data else None
    appointment = BookingService(db).cancel_appointment(appointment_id, current_user, reason)
    return AppointmentActionResponse(
        message="Appointment cancelled successfully",
        appointment=AppointmentResponse.model_validate(appointment),
    )

@router.post("/{appointment_id}/reschedule", response_model=AppointmentActionResponse)
async def reschedule_appointment(
    appointment_id: uuid.UUID,
    slot: AppointmentReschedule,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    appointment = BookingService(db).reschedule_appointment(appointment_id, current_user, slot)
    return AppointmentActionResponse(
        message="Appointment rescheduled successfully",
        appointment=AppointmentResponse.model_validate(appointment),
    )

@router.post(
    "/{appointment_id}/medical-record",
    response_model=MedicalRecordActionResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_medical_record(
    appointment_id: uuid.UUID,
    record_data: MedicalRecordCreate,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    """Record the consultation outcome; completes the appointment."""
    record = BookingService(db).add_medical_record(appointment_id, current_user, record_data)
    return MedicalRecordActionResponse(
        message="Medical record added successfully",
        medical_record=MedicalRecordResponse.model_validate(record),
    )

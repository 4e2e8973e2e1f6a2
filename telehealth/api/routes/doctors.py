from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
import uuid

from ...core.database import get_db
from ...api.deps import get_doctor_user
from ...services.doctor_service import DoctorService
from ...schemas.auth import MessageResponse
from ...schemas.doctor import (
    DoctorSummary, DoctorDetail, DoctorProfileResponse, DoctorProfileUpdate,
    AvailabilitySlotCreate, AvailabilitySlotResponse, DoctorAppointmentResponse,
    PatientHistoryEntry
)
from ...models.user import User

router = APIRouter(prefix="/doctors", tags=["Doctors"])

# Doctor-only routes are declared before "/{doctor_id}" so "me" is not read as an id

@router.get("/me/profile", response_model=DoctorProfileResponse)
async def get_own_profile(
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    return DoctorService(db).get_profile(current_user)

@router.put("/me/profile", response_model=DoctorProfileResponse)
async def update_own_profile(
    update: DoctorProfileUpdate,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    return DoctorService(db).update_profile(current_user, update)

@router.get("/me/appointments", response_model=List[DoctorAppointmentResponse])
async def list_own_appointments(
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    """List own appointments with patient details."""
    return DoctorService(db).list_appointments(current_user)

@router.get("/me/availability", response_model=List[AvailabilitySlotResponse])
async def list_own_availability(
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    return DoctorService(db).list_availability(current_user)

@router.post(
    "/me/availability",
    response_model=AvailabilitySlotResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_availability(
    slot_data: AvailabilitySlotCreate,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    """Declare a weekly availability window."""
    return DoctorService(db).add_availability(current_user, slot_data)

@router.delete("/me/availability/{slot_id}", response_model=MessageResponse)
async def delete_availability(
    slot_id: uuid.UUID,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    DoctorService(db).delete_availability(current_user, slot_id)
    return MessageResponse(message="Availability slot deleted successfully")

@router.get("/patient-history/{patient_id}", response_model=List[PatientHistoryEntry])
async def patient_history(
    patient_id: uuid.UUID,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db)
):
    """Medical records of a patient, with prescriptions."""
    return DoctorService(db).patient_history(current_user, patient_id)

# Public directory

@router.get("/", response_model=List[DoctorSummary])
async def list_doctors(
    specialization: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List approved doctors, best rated first."""
    return DoctorService(db).list_doctors(specialization=specialization, search=search)

@router.get("/{doctor_id}", response_model=DoctorDetail)
async def get_doctor(
    doctor_id: uuid.UUID,
    db: Session = Depends(get_db)
):
    return DoctorService(db).get_doctor(doctor_id)

@router.get("/{doctor_id}/availability", response_model=List[AvailabilitySlotResponse])
async def get_doctor_availability(
    doctor_id: uuid.UUID,
    db: Session = Depends(get_db)
):
    """Bookable weekly windows of a doctor."""
    return DoctorService(db).get_public_availability(doctor_id)

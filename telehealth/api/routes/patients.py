from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_patient_user
from ...services.patient_service import PatientService
from ...schemas.patient import (
    PatientProfileResponse, PatientProfileUpdate, PatientAppointmentResponse,
    MedicalHistoryEntry, PrescriptionResponse
)
from ...models.user import User

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.get("/profile", response_model=PatientProfileResponse)
async def get_profile(
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    return PatientService(db).get_profile(current_user)

@router.put("/profile", response_model=PatientProfileResponse)
async def update_profile(
    update: PatientProfileUpdate,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    """Update profile fields; omitted fields are left unchanged."""
    return PatientService(db).update_profile(current_user, update)

@router.get("/appointments", response_model=List[PatientAppointmentResponse])
async def list_appointments(
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    """List own appointments, newest first."""
    return PatientService(db).list_appointments(current_user)

@router.get("/medical-history", response_model=List[MedicalHistoryEntry])
async def medical_history(
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    return PatientService(db).medical_history(current_user)

@router.get("/prescriptions", response_model=List[PrescriptionResponse])
async def prescriptions(
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    return PatientService(db).prescriptions(current_user)

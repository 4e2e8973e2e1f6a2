from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.exceptions import NotFoundError
from ..models.user import User
from ..models.patient import PatientProfile
from ..models.doctor import DoctorProfile
from ..models.appointment import Appointment
from ..models.medical_record import MedicalRecord, Prescription
from ..schemas.patient import (
    PatientProfileResponse, PatientProfileUpdate, PatientAppointmentResponse,
    MedicalHistoryEntry, PrescriptionResponse
)

logger = logging.getLogger(__name__)

USER_FIELDS = ("first_name", "last_name", "phone")

PROFILE_FIELDS = (
    "date_of_birth", "gender", "blood_group", "address", "city", "state",
    "pincode", "emergency_contact", "allergies", "chronic_conditions",
)


class PatientService:
    def __init__(self, db: Session):
        self.db = db

    def _doctor_rows(self, model):
        """Join ``model`` rows to their doctor and the doctor's profile."""
        return self.db.query(model, User, DoctorProfile).join(
            User, User.id == model.doctor_id
        ).outerjoin(
            DoctorProfile, DoctorProfile.user_id == User.id
        )

    def get_profile(self, patient: User) -> PatientProfileResponse:
        profile = patient.patient_profile
        if profile is None:
            raise NotFoundError("Profile not found")

        return PatientProfileResponse(
            id=patient.id,
            email=patient.email,
            first_name=patient.first_name,
            last_name=patient.last_name,
            phone=patient.phone,
            **{field: getattr(profile, field) for field in PROFILE_FIELDS},
        )

    def update_profile(self, patient: User, update: PatientProfileUpdate) -> PatientProfileResponse:
        """Apply a partial update; omitted fields keep their stored values."""
        profile = patient.patient_profile
        if profile is None:
            profile = PatientProfile(user_id=patient.id)
            self.db.add(profile)
            patient.patient_profile = profile

        for field, value in update.model_dump(exclude_unset=True).items():
            target = patient if field in USER_FIELDS else profile
            if value is None and field in ("first_name", "last_name"):
                continue
            setattr(target, field, value)

        self.db.commit()
        self.db.refresh(patient)
        logger.info(f"Patient {patient.id} updated their profile")
        return self.get_profile(patient)

    def list_appointments(self, patient: User) -> List[PatientAppointmentResponse]:
        rows = self._doctor_rows(Appointment).filter(
            Appointment.patient_id == patient.id
        ).order_by(
            Appointment.appointment_date.desc(), Appointment.start_time.desc()
        ).all()

        return [
            PatientAppointmentResponse(
                id=appointment.id,
                doctor_id=appointment.doctor_id,
                appointment_date=appointment.appointment_date,
                start_time=appointment.start_time,
                end_time=appointment.end_time,
                status=appointment.status,
                symptoms=appointment.symptoms,
                cancellation_reason=appointment.cancellation_reason,
                video_channel_name=appointment.video_channel_name,
                doctor_first_name=doctor.first_name,
                doctor_last_name=doctor.last_name,
                specialization=profile.specialization if profile else None,
                hospital_name=profile.hospital_name if profile else None,
            )
            for appointment, doctor, profile in rows
        ]

    def medical_history(self, patient: User) -> List[MedicalHistoryEntry]:
        rows = self._doctor_rows(MedicalRecord).filter(
            MedicalRecord.patient_id == patient.id
        ).order_by(MedicalRecord.created_at.desc()).all()

        return [
            MedicalHistoryEntry(
                id=record.id,
                appointment_id=record.appointment_id,
                doctor_id=record.doctor_id,
                diagnosis=record.diagnosis,
                symptoms=record.symptoms,
                notes=record.notes,
                vital_signs=record.vital_signs,
                doctor_first_name=doctor.first_name,
                doctor_last_name=doctor.last_name,
                specialization=profile.specialization if profile else None,
                appointment_date=record.appointment.appointment_date if record.appointment else None,
                created_at=record.created_at,
            )
            for record, doctor, profile in rows
        ]

    def prescriptions(self, patient: User) -> List[PrescriptionResponse]:
        rows = self._doctor_rows(Prescription).filter(
            Prescription.patient_id == patient.id
        ).order_by(Prescription.created_at.desc()).all()

        return [
            PrescriptionResponse(
                id=prescription.id,
                medical_record_id=prescription.medical_record_id,
                appointment_id=prescription.appointment_id,
                doctor_id=prescription.doctor_id,
                medications=prescription.medications,
                instructions=prescription.instructions,
                doctor_first_name=doctor.first_name,
                doctor_last_name=doctor.last_name,
                specialization=profile.specialization if profile else None,
                appointment_date=prescription.appointment.appointment_date if prescription.appointment else None,
                created_at=prescription.created_at,
            )
            for prescription, doctor, profile in rows
        ]

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging
import uuid

from ..core.exceptions import ConflictError, NotFoundError
from ..core.security import UserRole
from ..models.user import User
from ..models.doctor import DoctorProfile
from ..models.patient import PatientProfile
from ..models.availability import AvailabilitySlot
from ..models.appointment import Appointment
from ..models.medical_record import MedicalRecord
from ..schemas.doctor import (
    DoctorSummary, DoctorDetail, DoctorProfileResponse, DoctorProfileUpdate,
    AvailabilitySlotCreate, DoctorAppointmentResponse, PatientHistoryEntry
)

logger = logging.getLogger(__name__)

# Fields of DoctorProfileUpdate stored on the user row rather than the profile
USER_FIELDS = ("first_name", "last_name", "phone")


def _profile_fields(user: User, profile: DoctorProfile) -> dict:
    return dict(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone=user.phone,
        specialization=profile.specialization,
        qualification=profile.qualification,
        experience_years=profile.experience_years,
        hospital_name=profile.hospital_name,
        bio=profile.bio,
        consultation_fee=float(profile.consultation_fee) if profile.consultation_fee is not None else None,
        rating=float(profile.rating or 0),
        total_consultations=profile.total_consultations or 0,
    )


class DoctorService:
    def __init__(self, db: Session):
        self.db = db

    def _public_doctors(self):
        return self.db.query(User, DoctorProfile).join(
            DoctorProfile, DoctorProfile.user_id == User.id
        ).filter(
            User.role == UserRole.DOCTOR,
            User.is_approved.is_(True),
            User.is_active.is_(True),
        )

    # Public directory

    def list_doctors(
        self, specialization: Optional[str] = None, search: Optional[str] = None
    ) -> List[DoctorSummary]:
        """Approved, active doctors, best rated first."""
        query = self._public_doctors()

        if specialization:
            query = query.filter(DoctorProfile.specialization.ilike(f"%{specialization}%"))

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                DoctorProfile.specialization.ilike(pattern),
            ))

        rows = query.order_by(
            DoctorProfile.rating.desc(),
            DoctorProfile.total_consultations.desc(),
        ).all()
        return [DoctorSummary(**_profile_fields(user, profile)) for user, profile in rows]

    def get_doctor(self, doctor_id: uuid.UUID) -> DoctorDetail:
        row = self._public_doctors().filter(User.id == doctor_id).first()
        if not row:
            raise NotFoundError("Doctor not found")
        user, profile = row
        return DoctorDetail(**_profile_fields(user, profile), hospital_address=profile.hospital_address)

    def get_public_availability(self, doctor_id: uuid.UUID) -> List[AvailabilitySlot]:
        if not self._public_doctors().filter(User.id == doctor_id).first():
            raise NotFoundError("Doctor not found")
        return self.db.query(AvailabilitySlot).filter(
            AvailabilitySlot.doctor_id == doctor_id,
            AvailabilitySlot.is_available.is_(True),
        ).order_by(AvailabilitySlot.day_of_week, AvailabilitySlot.start_time).all()

    # Own profile

    def _own_profile(self, doctor: User) -> DoctorProfile:
        profile = doctor.doctor_profile
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    def get_profile(self, doctor: User) -> DoctorProfileResponse:
        profile = self._own_profile(doctor)
        return DoctorProfileResponse(
            **_profile_fields(doctor, profile),
            hospital_address=profile.hospital_address,
            is_approved=doctor.is_approved,
            registration_number=profile.registration_number,
        )

    def update_profile(self, doctor: User, update: DoctorProfileUpdate) -> DoctorProfileResponse:
        profile = self._own_profile(doctor)

        for field, value in update.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            target = doctor if field in USER_FIELDS else profile
            setattr(target, field, value)

        self.db.commit()
        self.db.refresh(doctor)
        self.db.refresh(profile)
        return self.get_profile(doctor)

    def list_appointments(self, doctor: User) -> List[DoctorAppointmentResponse]:
        rows = self.db.query(Appointment, User, PatientProfile).join(
            User, User.id == Appointment.patient_id
        ).outerjoin(
            PatientProfile, PatientProfile.user_id == User.id
        ).filter(
            Appointment.doctor_id == doctor.id
        ).order_by(
            Appointment.appointment_date.desc(), Appointment.start_time.desc()
        ).all()

        return [
            DoctorAppointmentResponse(
                id=appointment.id,
                patient_id=appointment.patient_id,
                appointment_date=appointment.appointment_date,
                start_time=appointment.start_time,
                end_time=appointment.end_time,
                status=appointment.status,
                symptoms=appointment.symptoms,
                cancellation_reason=appointment.cancellation_reason,
                video_channel_name=appointment.video_channel_name,
                patient_first_name=patient.first_name,
                patient_last_name=patient.last_name,
                patient_phone=patient.phone,
                date_of_birth=profile.date_of_birth if profile else None,
                blood_group=profile.blood_group if profile else None,
                allergies=profile.allergies if profile else None,
                chronic_conditions=profile.chronic_conditions if profile else None,
            )
            for appointment, patient, profile in rows
        ]

    # Weekly availability

    def list_availability(self, doctor: User) -> List[AvailabilitySlot]:
        return self.db.query(AvailabilitySlot).filter(
            AvailabilitySlot.doctor_id == doctor.id
        ).order_by(AvailabilitySlot.day_of_week, AvailabilitySlot.start_time).all()

    def add_availability(self, doctor: User, data: AvailabilitySlotCreate) -> AvailabilitySlot:
        existing = self.db.query(AvailabilitySlot.id).filter(
            AvailabilitySlot.doctor_id == doctor.id,
            AvailabilitySlot.day_of_week == data.day_of_week,
            AvailabilitySlot.start_time == data.start_time,
        ).first()
        if existing:
            raise ConflictError("Slot already exists")

        slot = AvailabilitySlot(
            doctor_id=doctor.id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            is_available=data.is_available,
        )
        self.db.add(slot)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Slot already exists")
        self.db.refresh(slot)

        logger.info(f"Doctor {doctor.id} added availability on day {slot.day_of_week} at {slot.start_time}")
        return slot

    def delete_availability(self, doctor: User, slot_id: uuid.UUID) -> None:
        slot = self.db.query(AvailabilitySlot).filter(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.doctor_id == doctor.id,
        ).first()
        if not slot:
            raise NotFoundError("Slot not found")

        self.db.delete(slot)
        self.db.commit()

    def patient_history(self, doctor: User, patient_id: uuid.UUID) -> List[PatientHistoryEntry]:
        """Every medical record of a patient, with prescribed medications."""
        records = self.db.query(MedicalRecord).options(
            joinedload(MedicalRecord.prescription)
        ).filter(
            MedicalRecord.patient_id == patient_id
        ).order_by(MedicalRecord.created_at.desc()).all()

        logger.info(f"Doctor {doctor.id} viewed history of patient {patient_id}")

        return [
            PatientHistoryEntry(
                id=record.id,
                appointment_id=record.appointment_id,
                doctor_id=record.doctor_id,
                diagnosis=record.diagnosis,
                symptoms=record.symptoms,
                notes=record.notes,
                vital_signs=record.vital_signs,
                medications=record.prescription.medications if record.prescription else None,
                prescription_instructions=record.prescription.instructions if record.prescription else None,
                created_at=record.created_at,
            )
            for record in records
        ]

from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import uuid

from ..core.exceptions import BadRequestError, NotFoundError
from ..core.security import UserRole
from ..models.user import User
from ..models.doctor import DoctorProfile
from ..models.appointment import Appointment, AppointmentStatus
from ..models.medical_record import MedicalRecord, Prescription
from ..schemas.admin import SystemStats, PendingDoctorResponse

logger = logging.getLogger(__name__)


class AdminService:
    """User moderation and system statistics for administrators."""

    def __init__(self, db: Session):
        self.db = db

    def _count(self, model, *criteria) -> int:
        return self.db.query(func.count(model.id)).filter(*criteria).scalar() or 0

    def get_stats(self) -> SystemStats:
        return SystemStats(
            total_patients=self._count(User, User.role == UserRole.PATIENT),
            total_doctors=self._count(User, User.role == UserRole.DOCTOR, User.is_approved.is_(True)),
            pending_doctors=self._count(User, User.role == UserRole.DOCTOR, User.is_approved.is_(False)),
            scheduled_appointments=self._count(Appointment, Appointment.status == AppointmentStatus.SCHEDULED),
            completed_appointments=self._count(Appointment, Appointment.status == AppointmentStatus.COMPLETED),
            cancelled_appointments=self._count(Appointment, Appointment.status == AppointmentStatus.CANCELLED),
            total_medical_records=self._count(MedicalRecord),
            total_prescriptions=self._count(Prescription),
        )

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        query = self.db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc()).all()

    def list_pending_doctors(self) -> List[PendingDoctorResponse]:
        rows = self.db.query(User, DoctorProfile).join(
            DoctorProfile, DoctorProfile.user_id == User.id
        ).filter(
            User.role == UserRole.DOCTOR,
            User.is_approved.is_(False),
        ).order_by(User.created_at.desc()).all()

        return [
            PendingDoctorResponse(
                id=user.id,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                phone=user.phone,
                created_at=user.created_at,
                specialization=profile.specialization,
                qualification=profile.qualification,
                experience_years=profile.experience_years,
                hospital_name=profile.hospital_name,
                registration_number=profile.registration_number,
            )
            for user, profile in rows
        ]

    def _get_user(self, user_id: uuid.UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def approve_doctor(self, doctor_id: uuid.UUID, admin: User) -> User:
        doctor = self.db.query(User).filter(
            User.id == doctor_id,
            User.role == UserRole.DOCTOR,
        ).first()
        if not doctor:
            raise NotFoundError("Doctor not found")

        doctor.is_approved = True
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Admin {admin.id} approved doctor {doctor.id}")
        return doctor

    def set_active(self, user_id: uuid.UUID, admin: User, is_active: bool) -> User:
        user = self._get_user(user_id)

        if not is_active and user.id == admin.id:
            raise BadRequestError("You cannot deactivate your own account")

        user.is_active = is_active
        self.db.commit()
        self.db.refresh(user)

        logger.info(
            f"Admin {admin.id} {'activated' if is_active else 'deactivated'} user {user.id}"
        )
        return user
